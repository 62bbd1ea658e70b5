"""Candidate leak paths for an origin and for the directories seen while crawling."""

from typing import Iterable, List
from urllib.parse import urlsplit

# Order is stable; reports and tests rely on it.
CANDIDATE_ENV_PATHS = [
    "/.env",
    "/.env.local",
    "/.env.development",
    "/.env.production",
    "/.env.backup",
    "/.env.bak",
    "/.env.old",
    "/config/.env",
    "/api/.env",
    "/server/.env",
    "/backup/.env",
]


def normalize_origin(base: str) -> str:
    """
    Reduce *base* to ``scheme://host[:port]`` with no trailing slash.

    Bare hostnames get ``https://``. Raises ValueError when no host can be
    found or the scheme is not http/https.
    """
    base = (base or "").strip()
    if not base.lower().startswith(("http://", "https://")):
        if "://" in base:
            raise ValueError(f"Unsupported scheme in target: {base!r}")
        base = "https://" + base
    parts = urlsplit(base)
    if not parts.hostname:
        raise ValueError(f"Target has no host: {base!r}")
    netloc = parts.hostname
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    return f"{parts.scheme.lower()}://{netloc}"


def static_candidates(origin: str) -> List[str]:
    origin = origin.rstrip("/")
    return [origin + path for path in CANDIDATE_ENV_PATHS]


def directory_candidates(directories: Iterable[str]) -> List[str]:
    """``<dir>/.env`` for every discovered directory. Duplicates are kept."""
    return [d.rstrip("/") + "/.env" for d in directories]
