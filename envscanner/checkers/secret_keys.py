"""Detection of OpenAI-style ``sk-`` secret keys in text resources."""

import re
from typing import List

from envscanner.checkers.base import MAX_MATCHES, cap_body, context_snippet, split_lines
from envscanner.core.models import SecretMatch

SECRET_KEY = re.compile(r"sk-[A-Za-z0-9_-]{20,}", re.I)


def find_secret_keys(body: str) -> List[SecretMatch]:
    """
    Scan *body* line by line for secret keys.

    Returns at most five matches across the whole body, in the order they
    appear, each with its 1-based line number and a short context snippet.
    """
    matches: List[SecretMatch] = []
    for idx, line in enumerate(split_lines(cap_body(body)), start=1):
        for m in SECRET_KEY.finditer(line):
            matches.append(SecretMatch(
                line_number=idx,
                matched_text=m.group(0),
                context_snippet=context_snippet(line, m.start(), m.end()),
            ))
            if len(matches) >= MAX_MATCHES:
                return matches
    return matches
