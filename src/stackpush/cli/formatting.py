"""Push result rendering."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import typer

if TYPE_CHECKING:
    from collections.abc import Callable

    from stackpush.engine.types import OutputRecord, PushResult


class _OutcomeStyle(NamedTuple):
    color: str
    verb: str


_OUTCOME_STYLES: dict[str, _OutcomeStyle] = {
    "created": _OutcomeStyle("green", "created"),
    "updated": _OutcomeStyle("yellow", "updated"),
    "no-op": _OutcomeStyle("bright_black", "already up-to-date"),
    "failed": _OutcomeStyle("red", "failed"),
}


def styler(color: bool) -> Callable[..., str]:
    """Return ``typer.style`` when *color* is True, otherwise a passthrough."""
    if color:
        return typer.style
    return lambda text, **_kw: text


def _align_values(items: dict[str, str]) -> list[tuple[str, str]]:
    """Right-pad keys so ``=`` signs align."""
    if not items:
        return []
    max_key = max(len(k) for k in items)
    return [(k.ljust(max_key), v) for k, v in items.items()]


def format_outputs(record: OutputRecord) -> str:
    """Render collected outputs as aligned ``key = value`` lines."""
    if not record.values:
        return "No outputs."
    return "\n".join(f"  {k} = {v}" for k, v in _align_values(record.values))


def format_push_summary(result: PushResult, *, color: bool = True) -> str:
    """Render ``Push complete! my-stack-dev-us-east-1 created.``"""
    style = styler(color)
    outcome = _OUTCOME_STYLES[result.outcome.value]
    header = style("Push complete!", fg="green", bold=True)
    return f"{header} {result.name} {style(outcome.verb, fg=outcome.color)}."
