"""Escaping of untrusted text for AppleScript string literals."""

import re
import shlex

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_SPECIAL = re.compile(r'[\\"\n\r\t]')
# C0 controls other than tab, LF and CR have no escape inside an AppleScript
# literal; quote() spells them as ``character id`` expressions instead.
_UNPRINTABLE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def escape_string(value: str | None) -> str:
    """Escape text for use between double quotes in AppleScript source.

    None and empty input both map to the empty string, never to ``missing value``.
    Single quotes need no treatment: scripts are passed to the interpreter as a
    single argv element, so no shell ever parses them. Raises ValueError for
    control characters that have no escape; use :func:`quote` for those.
    """
    if not value:
        return ""
    text = str(value)
    unprintable = _UNPRINTABLE.search(text)
    if unprintable:
        raise ValueError(f"Cannot escape character id {ord(unprintable.group(0))} inside a literal")
    return _SPECIAL.sub(lambda match: _ESCAPES[match.group(0)], text)


def quote(value: str | None) -> str:
    """Return ``value`` as an AppleScript text expression.

    Plain text becomes one double-quoted literal. Text containing other control
    characters becomes a parenthesized concatenation of literals and
    ``(character id N)`` terms, so every character survives.
    """
    text = str(value) if value else ""
    parts: list[str] = []
    position = 0
    for match in _UNPRINTABLE.finditer(text):
        if match.start() > position:
            parts.append(f'"{escape_string(text[position:match.start()])}"')
        parts.append(f"(character id {ord(match.group(0))})")
        position = match.end()
    if position < len(text) or not parts:
        parts.append(f'"{escape_string(text[position:])}"')
    if len(parts) == 1:
        return parts[0]
    return "(" + " & ".join(parts) + ")"


def shell_command(args: list[str]) -> str:
    """Render an argv list as a copy-pasteable shell command line."""
    return shlex.join(args)
