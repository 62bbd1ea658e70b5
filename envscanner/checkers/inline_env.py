"""Inline environment references leaked into JS bundles and HTML pages."""

import re
from typing import List, Tuple
from urllib.parse import urlsplit

from envscanner.checkers.base import MAX_MATCHES, cap_body, context_snippet, split_lines
from envscanner.core.models import EnvRefMatch

INLINE_EXTENSIONS = (".js", ".html", ".htm")

# (label, regex, has_value). Checked in this order on every line.
_PATTERNS: List[Tuple[str, "re.Pattern", bool]] = [
    # process.env.API_KEY inlined by a bundler
    ("process_env", re.compile(r"process\.env\.(\w+)", re.I), False),
    # window.__appEnv = {...}
    ("window_env", re.compile(r"window\.(\w*Env\w*)", re.I), False),
    # <meta name="app-env" content="production">
    ("meta_env", re.compile(
        r"""meta\s+name=["']([^"']*env[^"']*)["'][^>]*content=["']([^"']+)["']""",
        re.I), True),
]


def is_inline_env_candidate(url: str) -> bool:
    """Only JS and HTML resources are scanned for inline references."""
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return False
    return path.endswith(INLINE_EXTENSIONS)


def find_inline_env_references(body: str) -> List[EnvRefMatch]:
    matches: List[EnvRefMatch] = []
    for idx, line in enumerate(split_lines(cap_body(body)), start=1):
        for label, rx, has_value in _PATTERNS:
            for m in rx.finditer(line):
                matches.append(EnvRefMatch(
                    line_number=idx,
                    variable_name=m.group(1),
                    value=m.group(2) if has_value else None,
                    context_snippet=context_snippet(line, m.start(), m.end()),
                    pattern=label,
                ))
                if len(matches) >= MAX_MATCHES:
                    return matches
    return matches
