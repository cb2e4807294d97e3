"""String helpers for width-bounded text output.

Usage:
    elide("https://example.org/dir/file.html", 25)   # "https://example.org/di…ml"
    url_path("https://example.org/dir/file.html")    # "/dir/file.html"
"""

import re
from urllib.parse import urlsplit, urlunsplit

ELLIPSIS = "…"

# '<scheme>://<authority>/' and the remainder of a URL
_URL_RE = re.compile(r"^([^/]+://[^/]+/)(.+)$", re.DOTALL)


def elide(s: str, max_len: int) -> str:
    """Shorten *s* to at most *max_len* code points.

    URLs keep their scheme and authority, and the middle of the path is
    replaced so that the tail (usually the file name) stays visible.
    Everything else is truncated at the end.
    """
    if len(s) <= max_len:
        return s
    if max_len <= 0:
        return ""

    m = _URL_RE.match(s)
    if m and len(m.group(1)) < max_len:
        prefix, rest = m.group(1), m.group(2)
        out = prefix + rest[:(max_len - len(prefix)) // 2] + ELLIPSIS
        remaining = max_len - len(out)
        if remaining > 0:
            out += rest[-remaining:]
        return out

    return s[:max_len - 1] + ELLIPSIS


def url_path(full: str) -> str:
    """Return *full* without its scheme, userinfo, host and port.

    Query and fragment are kept. Input that can't be parsed as a URL is
    returned unchanged.
    """
    try:
        parts = urlsplit(full)
    except ValueError:
        return full
    return urlunsplit(("", "", parts.path, parts.query, parts.fragment))
