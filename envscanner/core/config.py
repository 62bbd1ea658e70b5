"""Scan and harvest settings. CLI flags override the defaults below."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

MAX_BODY_SIZE = 1_000_000          # characters; larger bodies are not classified

DEFAULT_TLDS = ["com", "app", "dev", "org", "net", "io"]


@dataclass
class ScanConfig:
    max_depth: int = 2
    probe_timeout: float = 5.0
    max_redirects: int = 3
    max_body_size: int = MAX_BODY_SIZE
    max_resources: int = 200       # crawl bound per host

    # Pool sizes per pass
    static_concurrency: int = 5
    directory_concurrency: int = 10
    batch_concurrency: int = 5
    dns_concurrency: int = 20

    resolve_dns: bool = True
    verify_tls: bool = False
    proxy: Optional[str] = None


@dataclass
class HarvestConfig:
    endpoint: str = "https://crt.sh/"
    tlds: List[str] = field(default_factory=lambda: list(DEFAULT_TLDS))
    per_tld_limit: int = 100
    recent_days: int = 30          # only applied to .com, which is too large otherwise
    timeout: float = 120.0
    max_retries: int = 5
    base_delay: float = 5.0
    query_delay: float = 15.0
    query_jitter: Tuple[float, float] = (2.0, 6.0)
    proxy: Optional[str] = None
