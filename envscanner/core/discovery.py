"""Listeners for the crawler's resource-saved events.

Both collectors are scoped to one host scan: the engine creates fresh
instances for every call and drops them afterwards. They only consume
events; neither issues requests.
"""

from typing import List, Optional, Protocol, Set
from urllib.parse import urlsplit

from envscanner.checkers.base import cap_body
from envscanner.checkers.inline_env import find_inline_env_references, is_inline_env_candidate
from envscanner.checkers.secret_keys import find_secret_keys
from envscanner.core.models import InlineEnvReferenceHit, InlineSecretHit


class ResourceListener(Protocol):
    """What the crawler calls once per successfully retrieved resource."""

    def on_resource_saved(self, url: str, is_text: bool, body: Optional[str]) -> None:
        ...


# ── Helpers ────────────────────────────────────────────────────

def is_same_origin(base_url: str, target_url: str) -> bool:
    """Scheme and hostname must both match. Ports are not compared."""
    try:
        base = urlsplit(base_url)
        target = urlsplit(target_url)
    except ValueError:
        return False
    return (base.scheme.lower() == target.scheme.lower()
            and base.hostname is not None
            and base.hostname == target.hostname)


def containing_directory(path: str) -> str:
    """``/a/b/`` → ``/a/b/``; ``/a/b/app.js`` → ``/a/b/``; ``app.js`` → ``/``."""
    if path.endswith("/"):
        return path
    idx = path.rfind("/")
    return path[:idx + 1] if idx >= 0 else "/"


# ── Collectors ─────────────────────────────────────────────────

class DirectoryCollector:
    """Grows the set of same-origin directories observed during a crawl."""

    def __init__(self, origin: str):
        self.origin = origin.rstrip("/")
        self._dirs: Set[str] = {self.origin + "/"}

    def on_resource_saved(self, url: str, is_text: bool, body: Optional[str]) -> None:
        if not is_same_origin(self.origin, url):
            return
        try:
            parts = urlsplit(url)
        except ValueError:
            return
        self._dirs.add(f"{parts.scheme}://{parts.netloc}{containing_directory(parts.path)}")

    @property
    def directories(self) -> List[str]:
        return sorted(self._dirs)


class InlineLeakCollector:
    """Runs the secret and inline-env classifiers over crawled text resources."""

    def __init__(self, origin: str, logger=None):
        self.origin = origin.rstrip("/")
        self.logger = logger
        self.secret_hits: List[InlineSecretHit] = []
        self.env_inline_hits: List[InlineEnvReferenceHit] = []

    def on_resource_saved(self, url: str, is_text: bool, body: Optional[str]) -> None:
        if not is_text or not isinstance(body, str):
            return
        if not is_same_origin(self.origin, url):
            return

        content = cap_body(body)
        secrets = find_secret_keys(content)
        if secrets:
            self.secret_hits.append(
                InlineSecretHit(url=url, matches=secrets, content_length=len(body)))
            if self.logger:
                self.logger.finding("secret", url, f"{len(secrets)} sk- key(s)")

        if is_inline_env_candidate(url):
            refs = find_inline_env_references(content)
            if refs:
                self.env_inline_hits.append(
                    InlineEnvReferenceHit(url=url, matches=refs, content_length=len(body)))
                if self.logger:
                    names = ", ".join(sorted({r.variable_name for r in refs}))
                    self.logger.finding("inline", url, names)
