"""Helpers shared by the content classifiers.

Every classifier is a pure function of the body text: no network access,
no filesystem access, bounded input.
"""

from typing import List

from envscanner.core.config import MAX_BODY_SIZE

MAX_MATCHES = 5
SNIPPET_RADIUS = 20


def cap_body(body: str, limit: int = MAX_BODY_SIZE) -> str:
    """Truncate *body* so adversarially large responses cost bounded work."""
    if not body:
        return ""
    return body[:limit]


def split_lines(body: str) -> List[str]:
    """Split on LF / CRLF without dropping empty lines (line numbers matter)."""
    return body.replace("\r\n", "\n").split("\n")


def context_snippet(line: str, start: int, end: int, radius: int = SNIPPET_RADIUS) -> str:
    """Return the match plus *radius* characters on each side, stripped."""
    return line[max(0, start - radius):end + radius].strip()
