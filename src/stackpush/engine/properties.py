"""Property layer merging and template substitution.

Templates reference properties with ``${…}`` tokens (e.g. ``${BuildId}``).
The merged namespace is also the source of structured template parameters:
any key that literally occurs in a template is passed as a parameter.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from stackpush.engine.sources import PropertySource

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"\$\{([^}]+)\}")


def resolve(layers: Iterable[Mapping[str, str]]) -> dict[str, str]:
    """Merge *layers* left to right; later layers win on key collision."""
    merged: dict[str, str] = {}
    for layer in layers:
        merged.update(layer)
    return merged


def resolve_sources(sources: Sequence[PropertySource]) -> dict[str, str]:
    """Load every source in order and merge the resulting layers."""
    layers = []
    for source in sources:
        layer = source.load()
        logger.info("Property layer %s: %d keys", source.name, len(layer))
        layers.append(layer)
    return resolve(layers)


def substitute(template: str, properties: Mapping[str, str]) -> str:
    """Replace ``${key}`` tokens in *template* with their property values.

    Tokens whose key is not a property are left untouched, so CloudFormation's
    own ``${AWS::Region}`` style references survive. Substituted values are
    not scanned again.
    """

    def _lookup(match: re.Match[str]) -> str:
        return properties.get(match.group(1), match.group(0))

    return _TOKEN.sub(_lookup, template)


def template_parameters(template: str, properties: Mapping[str, str]) -> dict[str, str]:
    """Select the properties whose key occurs literally in *template*."""
    return {key: value for key, value in properties.items() if key in template}
