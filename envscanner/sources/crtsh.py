"""Certificate-transparency harvester.

Pulls recently issued certificate names from crt.sh, one query per TLD,
and turns them into a host list for ``envscanner batch``. crt.sh throttles
aggressively, so queries are spaced out, retried with backoff and sent with
a rotating browser User-Agent.
"""

import json
import random
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional
from urllib.parse import quote

from envscanner.core.config import HarvestConfig
from envscanner.core.fetcher import Fetcher
from envscanner.core.models import Success

_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://crt.sh/",
}


def build_query(tld: str, recent_days: Optional[int] = None, now: Optional[datetime] = None) -> str:
    """``%.io`` or ``%.com AND entry_timestamp > "2024-05-01"``."""
    query = f"%.{tld}"
    if recent_days:
        now = now or datetime.now(timezone.utc)
        since = (now - timedelta(days=recent_days)).strftime("%Y-%m-%d")
        query = f'{query} AND entry_timestamp > "{since}"'
    return query


def extract_names(records: Iterable[dict], tld: str, limit: int) -> List[str]:
    """Newest first; one certificate can carry several names, one per line."""
    ordered = sorted(
        (r for r in records if isinstance(r, dict)),
        key=lambda r: str(r.get("entry_timestamp") or ""),
        reverse=True,
    )
    names: Dict[str, None] = {}
    suffix = f".{tld}"
    for cert in ordered:
        for name in str(cert.get("name_value") or "").split("\n"):
            name = name.strip().lower()
            if not name or "*" in name or not name.endswith(suffix):
                continue
            names.setdefault(name, None)
            if len(names) >= limit:
                return list(names)
    return list(names)


class CertificateHarvester:

    def __init__(self, fetcher: Optional[Fetcher] = None, config: Optional[HarvestConfig] = None,
                 logger=None, sleep=time.sleep, rng: Optional[random.Random] = None):
        self.config = config or HarvestConfig()
        self.logger = logger
        self.sleep = sleep
        self.rng = rng or random.Random()
        self.fetcher = fetcher or Fetcher(
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
            base_delay=self.config.base_delay,
            rotate_user_agent=True,
            proxy=self.config.proxy,
            verify=True,
            logger=logger,
            sleep=sleep,
        )

    def query_url(self, tld: str) -> str:
        recent = self.config.recent_days if tld == "com" else None
        return f"{self.config.endpoint}?q={quote(build_query(tld, recent), safe='')}&output=json"

    def pull_tld(self, tld: str, limit: int) -> List[str]:
        url = self.query_url(tld)
        if self.logger:
            self.logger.info(f"Fetching recent domains ending in .{tld} from crt.sh...")

        outcome = self.fetcher.fetch_with_retry(url, headers=_HEADERS)
        if not isinstance(outcome, Success):
            if self.logger:
                self.logger.fail(f"CT pull error for .{tld}: {outcome.reason}")
            return []
        try:
            records = json.loads(outcome.body)
        except ValueError as exc:
            if self.logger:
                self.logger.fail(f"CT pull error for .{tld}: invalid JSON ({exc})")
            return []
        if not isinstance(records, list):
            if self.logger:
                self.logger.fail(f"CT pull error for .{tld}: unexpected document")
            return []
        return extract_names(records, tld, limit)

    def harvest(self, tlds: Optional[List[str]] = None, limit: Optional[int] = None) -> List[str]:
        tlds = tlds or self.config.tlds
        limit = limit or self.config.per_tld_limit
        domains: Dict[str, None] = {}
        for tld in tlds:
            lo, hi = self.config.query_jitter
            delay = self.config.query_delay + self.rng.uniform(lo, hi)
            if delay > 0:
                self.sleep(delay)
            for name in self.pull_tld(tld, limit):
                domains.setdefault(name, None)
        return list(domains)

    def close(self):
        self.fetcher.close()
