"""Merge and de-duplicate the findings of one host scan."""

from typing import Iterable, List, Optional, TypeVar

from envscanner.core.models import (
    EnvFileHit, HostScanReport, InlineEnvReferenceHit, InlineSecretHit, utc_now,
)

H = TypeVar("H")


def dedupe_by_url(hits: Iterable[H]) -> List[H]:
    """Keep the first hit per URL. Later duplicates are dropped, not merged."""
    seen = set()
    out: List[H] = []
    for hit in hits:
        if hit.url in seen:
            continue
        seen.add(hit.url)
        out.append(hit)
    return out


def build_report(
    target: str,
    max_depth: int,
    static_hits: Iterable[EnvFileHit],
    directory_hits: Iterable[EnvFileHit],
    secret_hits: Iterable[InlineSecretHit] = (),
    env_inline_hits: Iterable[InlineEnvReferenceHit] = (),
    scanned_at: Optional[str] = None,
) -> HostScanReport:
    return HostScanReport(
        target=target,
        max_depth=max_depth,
        env_hits=dedupe_by_url(list(static_hits) + list(directory_hits)),
        secret_hits=dedupe_by_url(secret_hits),
        env_inline_hits=dedupe_by_url(env_inline_hits),
        scanned_at=scanned_at or utc_now(),
    )
