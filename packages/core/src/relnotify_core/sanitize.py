"""Text normalisation for strings that come from GitHub or git.

PR titles, author names and commit subjects are written by people we do not
control. Before any of them reach a card or a plain-text message they are
reduced to printable characters and newlines, so a stray ESC sequence or a
zero-width joiner in a commit subject cannot break the chat surface's
renderer.
"""

from __future__ import annotations

import re

# Characters that render like the digit zero. Mapped to "0" so version strings
# and counts copied from other tools read the same everywhere.
_ZERO_LOOKALIKES = (
    "\u2070"  # superscript zero
    "\u2080"  # subscript zero
    "\u24ea"  # circled digit zero
    "\u24ff"  # negative circled digit zero
    "\u3007"  # ideographic number zero
    "\uff10"  # fullwidth digit zero
    "\u0660"  # arabic-indic
    "\u06f0"  # extended arabic-indic
    "\u07c0"  # nko
    "\u0966"  # devanagari
    "\u09e6"  # bengali
    "\u0e50"  # thai
    "\U0001d7ce"  # mathematical bold
    "\U0001d7d8"  # mathematical double-struck
    "\U0001d7e2"  # mathematical sans-serif
    "\U0001d7ec"  # mathematical sans-serif bold
    "\U0001d7f6"  # mathematical monospace
)
_ZERO_TABLE = str.maketrans({ch: "0" for ch in _ZERO_LOOKALIKES})

_SPACE_RUN_RE = re.compile(r" {2,}")
_TIMESTAMP_DISALLOWED_RE = re.compile(r"[^0-9TZ:+\-]")


def _to_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="ignore")
    if isinstance(value, str):
        return value
    try:
        return str(value)
    except Exception:
        return ""


def sanitize(text) -> str:
    """Return ``text`` reduced to printable characters and newlines.

    - bytes are decoded as UTF-8; malformed sequences are dropped
    - lookalike zero glyphs become ASCII ``0``
    - CRLF and lone CR become LF; every other whitespace character is a space
    - control, format and unassigned characters are removed
    - runs of spaces collapse, and spaces around newlines and at either end
      are trimmed

    Never raises, and ``sanitize(sanitize(x)) == sanitize(x)``.
    """
    raw = _to_text(text)
    if not raw:
        return ""

    raw = raw.translate(_ZERO_TABLE).replace("\r\n", "\n").replace("\r", "\n")

    kept = []
    for ch in raw:
        if ch == "\n":
            kept.append(ch)
        elif ch.isspace():
            kept.append(" ")
        elif ch.isprintable():
            kept.append(ch)
    cleaned = _SPACE_RUN_RE.sub(" ", "".join(kept))

    lines = [line.strip(" ") for line in cleaned.split("\n")]
    return "\n".join(lines).strip("\n")


def sanitize_timestamp(value) -> str:
    """Return an ISO-8601 timestamp with everything outside ``[0-9T:+\\-Z]`` removed.

    Timestamps end up inside a search query string; anything else in there
    would change the meaning of the query.
    """
    return _TIMESTAMP_DISALLOWED_RE.sub("", sanitize(value))


def mask_secret(value: str | None, visible: int = 8) -> str:
    """Show only the first ``visible`` characters of a webhook URL or token."""
    if not value:
        return "(not set)"
    if len(value) <= visible:
        return "..."
    return value[:visible] + "..."
