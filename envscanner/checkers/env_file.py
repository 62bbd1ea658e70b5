import re

from envscanner.checkers.base import cap_body, split_lines

_ENV_LINE = re.compile(r"^[A-Z0-9_]+\s*=\s*.+$")

# A single KEY=value shaped log line is common; three is a file.
MIN_ENV_LINES = 3


def looks_like_env_file(body: str) -> bool:
    """True iff *body* has at least three ``KEY=value`` lines."""
    count = 0
    for line in split_lines(cap_body(body)):
        if line and _ENV_LINE.match(line):
            count += 1
            if count >= MIN_ENV_LINES:
                return True
    return False


def body_sample(body: str, lines: int = 10) -> str:
    """First few lines of a hit, kept in the report as evidence."""
    return "\n".join(split_lines(body or "")[:lines])
