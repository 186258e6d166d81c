"""
Escaping helpers for the two contexts the compiler writes untrusted text into:
element content / quoted attribute values, and href/src URLs.

Both functions are pure and total. Neither is idempotent: already-escaped
input is escaped again.
"""

from __future__ import annotations

import html
import string
from urllib.parse import quote

# Characters that pass through escape_href untouched; everything else is
# either an entity (& and ') or percent-encoded as UTF-8 bytes.
_HREF_SAFE = frozenset(string.ascii_letters + string.digits + "!#$%()*+,-./:;=?@_~")

_HREF_ENTITIES = {
    "&": "&amp;",
    "'": "&#x27;",
}


def escape_text(s: str) -> str:
    """Escape &, <, >, " and ' for element content or a quoted attribute."""
    return html.escape(s, quote=True)


def escape_href(s: str) -> str:
    """Make *s* safe inside a double-quoted href/src attribute.

    URL characters (including an existing %XX escape) are kept as-is, so a
    valid URL round-trips unchanged apart from & and '.
    """
    out = []
    for ch in s:
        if ch in _HREF_SAFE:
            out.append(ch)
        elif ch in _HREF_ENTITIES:
            out.append(_HREF_ENTITIES[ch])
        else:
            out.append(quote(ch, safe=""))
    return "".join(out)
