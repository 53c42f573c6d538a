"""Reading and writing Java-style ``.properties`` files.

The output of one push is written as a properties file and read back as a
property layer by the next push, so the codec has to round-trip whatever
keys and values a stack produces (ARNs, URLs, values with ``=`` or ``:``).
Files are Latin-1; characters outside of it are written as ``\\uXXXX``.
"""

from __future__ import annotations

import contextlib
import logging
import os
import re
import tempfile
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)

_ENCODING = "latin-1"
_COMMENT_CHARS = "#!"
_SEPARATORS = "=:"
_WHITESPACE = " \t\f"

# Only \n, \r and \r\n end a line; NEL (\x85) and U+2028 are ordinary characters.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_WRITE_ESCAPES = {"\t": "\\t", "\n": "\\n", "\r": "\\r", "\f": "\\f", "\\": "\\\\"}


class PropertiesSyntaxError(ValueError):
    """Raised for malformed escapes in a properties file."""


def _logical_lines(text: str) -> list[str]:
    """Join backslash-continued physical lines and drop comments/blanks."""
    lines: list[str] = []
    pending: str | None = None
    for raw in _LINE_BREAK.split(text):
        line = raw.lstrip(_WHITESPACE)
        if pending is None:
            if not line or line[0] in _COMMENT_CHARS:
                continue
            current = line
        else:
            current = pending + line

        trailing = len(current) - len(current.rstrip("\\"))
        if trailing % 2 == 1:
            pending = current[:-1]
            continue
        pending = None
        lines.append(current)

    if pending is not None:
        lines.append(pending)
    return lines


def _code_unit(value: str, start: int) -> int:
    digits = value[start : start + 4]
    if len(digits) != 4:
        raise PropertiesSyntaxError(f"Malformed \\uxxxx escape: \\u{digits}")
    try:
        return int(digits, 16)
    except ValueError as e:
        raise PropertiesSyntaxError(f"Malformed \\uxxxx escape: \\u{digits}") from e


def _is_high_surrogate(unit: int) -> bool:
    return 0xD800 <= unit <= 0xDBFF


def _is_low_surrogate(unit: int) -> bool:
    return 0xDC00 <= unit <= 0xDFFF


def _unescape(value: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        i += 1
        if i >= len(value):
            break
        ch = value[i]
        if ch == "u":
            unit = _code_unit(value, i + 1)
            i += 5
            # A surrogate pair spelled as two escapes decodes to one character.
            if _is_high_surrogate(unit) and value.startswith("\\u", i):
                low = _code_unit(value, i + 2)
                if _is_low_surrogate(low):
                    unit = 0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00)
                    i += 6
            out.append(chr(unit))
            continue
        out.append(_ESCAPES.get(ch, ch))
        i += 1
    return "".join(out)


def _unicode_escape(ch: str) -> str:
    code = ord(ch)
    if code <= 0xFFFF:
        return f"\\u{code:04x}"
    code -= 0x10000
    return f"\\u{0xD800 + (code >> 10):04x}\\u{0xDC00 + (code & 0x3FF):04x}"


def _split_line(line: str) -> tuple[str, str]:
    """Split a logical line into raw (still escaped) key and value."""
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in _SEPARATORS or ch in _WHITESPACE:
            break
        i += 1
    key = line[:i]

    rest = line[i:].lstrip(_WHITESPACE)
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def loads(text: str) -> dict[str, str]:
    """Parse properties text into an ordered mapping (last key wins)."""
    result: dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split_line(line)
        result[_unescape(key)] = _unescape(value)
    return result


def load(path: Path) -> dict[str, str]:
    """Load a properties file from disk."""
    return loads(Path(path).read_text(encoding=_ENCODING))


def _escape(text: str, *, is_key: bool) -> str:
    out: list[str] = []
    for idx, ch in enumerate(text):
        if ch in _WRITE_ESCAPES:
            out.append(_WRITE_ESCAPES[ch])
        elif ch == " " and (is_key or idx == 0):
            out.append("\\ ")
        elif ch in "=:#!" and (is_key or idx == 0):
            out.append("\\" + ch)
        elif ord(ch) < 0x20 or ord(ch) > 0x7E:
            out.append(_unicode_escape(ch))
        else:
            out.append(ch)
    return "".join(out)


def dumps(properties: dict[str, str], *, comment: str | None = None) -> str:
    """Render *properties* in properties-file syntax with a timestamp header."""
    lines: list[str] = []
    if comment:
        lines.append(f"#{comment}")
    lines.append("#" + datetime.now(UTC).strftime("%a %b %d %H:%M:%S %Z %Y"))
    for key, value in properties.items():
        lines.append(f"{_escape(key, is_key=True)}={_escape(value, is_key=False)}")
    return "\n".join(lines) + "\n"


def dump(properties: dict[str, str], path: Path, *, comment: str | None = None) -> None:
    """Write *properties* to *path*, replacing any previous file atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = dumps(properties, comment=comment)

    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    tmp_file = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding=_ENCODING) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        tmp_file.replace(path)
    finally:
        with contextlib.suppress(FileNotFoundError):
            tmp_file.unlink()
    logger.debug("Wrote %d properties to %s", len(properties), path)
