"""Filename-safe escaping for query strings embedded in file names."""

import re

# U+2215 DIVISION SLASH: looks like "/" but is not a path separator
DIVISION_SLASH = "∕"

_SPECIAL = {
    "\t": "\\t",
    "\r": "\\r",
    "\n": "\\n",
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
}


def escape_char(c: str) -> str:
    """Default single-character escape; printable ASCII passes through, the rest becomes \\u{XXXX}."""
    if c in _SPECIAL:
        return _SPECIAL[c]
    if " " <= c <= "~":
        return c
    return f"\\u{{{ord(c):x}}}"


def escape_path(text: str) -> str:
    """
    Escape text for use inside a single path component.
    "/" maps to DIVISION_SLASH so embedded URLs stay readable but cannot
    create directories; every other character goes through escape_char.
    """
    return "".join(DIVISION_SLASH if c == "/" else escape_char(c) for c in text)


_UNESCAPE = {escaped: c for c, escaped in _SPECIAL.items()}
_ESCAPE_SEQUENCE = re.compile(r"\\u\{([0-9a-f]{1,6})\}|\\.|" + DIVISION_SLASH)


def _unescape_one(match: re.Match) -> str:
    text = match.group(0)
    if text == DIVISION_SLASH:
        return "/"
    if match.group(1) is not None:
        code = int(match.group(1), 16)
        return chr(code) if code <= 0x10FFFF else text
    return _UNESCAPE.get(text, text)


def unescape_path(text: str) -> str:
    """Inverse of escape_path. Unknown backslash sequences are kept as they are."""
    return _ESCAPE_SEQUENCE.sub(_unescape_one, text)
