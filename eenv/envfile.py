"""
Env file codec: KEY=VALUE text <-> ordered mapping.

Lines are split the way str.splitlines splits them. Parsing is tolerant:
blank lines, comments, `export ` prefixes, inline ` #` comments and
quoted values are understood; anything malformed is skipped line by
line, never fatal for the whole file.

Serializing quotes only the values that need it, using JSON string
syntax so that parse(serialize(m)) == m.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Dict, Optional, Tuple

from .errors import ParseSkip

logger = logging.getLogger(__name__)

EnvMap = Dict[str, str]
RepoEnvMap = Dict[str, EnvMap]

_NEEDS_QUOTES = re.compile(r"[\s#\"'=]")
_EXPORT = "export "
_COMMENT = " #"

_RAW_LINE_BREAKS = ("\x85", "\u2028", "\u2029")

_decoder = json.JSONDecoder()


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse(text: str) -> EnvMap:
    """Parse env file text. Duplicate keys: the last occurrence wins."""
    out: EnvMap = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        try:
            parsed = _parse_line(line, lineno)
        except ParseSkip as skip:
            logger.debug("skipped %s", skip)
            continue
        if parsed is not None:
            key, value = parsed
            out[key] = value
    return out


def _parse_line(line: str, lineno: int) -> Optional[tuple]:
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("#"):
        return None

    if trimmed.startswith(_EXPORT):
        line = trimmed[len(_EXPORT):]

    key, sep, rest = line.partition("=")
    if not sep:
        raise ParseSkip(lineno, "no '=' found")
    key = key.strip()
    if not key:
        raise ParseSkip(lineno, "empty key")

    return key, _parse_value(rest.strip())


def _parse_value(val: str) -> str:
    quoted = _quoted_value(val)
    if quoted is not None:
        return quoted

    hash_pos = val.find(_COMMENT)
    if hash_pos != -1:
        val = val[:hash_pos].strip()

    if len(val) >= 2 and val[0] == val[-1] and val[0] in "\"'":
        val = val[1:-1]
    return val


def quoted_span(val: str) -> Optional[Tuple[str, int]]:
    """
    Decode a quoted string at the start of `val`.

    Returns (value, index just past the closing quote), or None when
    `val` does not start with a complete quoted string.
    """
    if val.startswith('"'):
        try:
            decoded, end = _decoder.raw_decode(val)
        except json.JSONDecodeError:
            return None
        if isinstance(decoded, str):
            return decoded, end
    elif val.startswith("'"):
        end = val.find("'", 1)
        if end != -1:
            return val[1:end], end + 1
    return None


def _quoted_value(val: str) -> Optional[str]:
    """A quoted value optionally followed by a comment, or None."""
    span = quoted_span(val)
    if span is not None and _only_comment(val[span[1]:]):
        return span[0]
    return None


def _only_comment(tail: str) -> bool:
    return not tail or (tail[0].isspace() and tail.lstrip().startswith("#"))


# ---------------------------------------------------------------------------
# Serializing
# ---------------------------------------------------------------------------


def needs_quotes(value: str) -> bool:
    return bool(_NEEDS_QUOTES.search(value))


def serialize(env_map: EnvMap) -> str:
    """Emit KEY=VALUE lines in mapping order, ending with one newline."""
    lines = []
    for key, value in env_map.items():
        value = "" if value is None else str(value)
        if needs_quotes(value):
            value = _escape_line_breaks(json.dumps(value, ensure_ascii=False))
        lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n"


def _escape_line_breaks(quoted: str) -> str:
    """json.dumps leaves these raw, but str.splitlines breaks on them."""
    for char in _RAW_LINE_BREAKS:
        quoted = quoted.replace(char, f"\\u{ord(char):04x}")
    return quoted
