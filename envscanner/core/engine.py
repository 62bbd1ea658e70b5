from typing import List, Optional

import httpx

from envscanner.checkers.env_file import body_sample, looks_like_env_file
from envscanner.core.aggregator import build_report
from envscanner.core.config import ScanConfig
from envscanner.core.crawler import Crawler
from envscanner.core.discovery import DirectoryCollector, InlineLeakCollector
from envscanner.core.fetcher import Fetcher
from envscanner.core.models import EnvFileHit, HostScanReport
from envscanner.core.paths import directory_candidates, normalize_origin, static_candidates
from envscanner.core.pool import WorkerPool


class Engine:
    """Crawl one origin, probe candidate .env paths, classify, aggregate."""

    def __init__(self, config: Optional[ScanConfig] = None, logger=None,
                 client: Optional[httpx.Client] = None):
        self.name = "EnvScanner"
        self.version = "1.0.0"
        self.config = config or ScanConfig()
        self.logger = logger
        self._owns_client = client is None
        self.client = client or httpx.Client(
            verify=self.config.verify_tls, proxy=self.config.proxy,
            follow_redirects=True, max_redirects=self.config.max_redirects,
            timeout=self.config.probe_timeout)
        self.fetcher = Fetcher(
            client=self.client, timeout=self.config.probe_timeout,
            max_body_size=self.config.max_body_size, logger=logger)

    def close(self):
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ---------- probing ----------
    def probe_env(self, url: str) -> Optional[EnvFileHit]:
        """Fetch one candidate path; a hit only for a 200 text body that looks like dotenv."""
        resp = self.fetcher.probe(url)
        if resp is None or not looks_like_env_file(resp.body):
            return None
        hit = EnvFileHit(
            url=url,
            status=resp.status,
            content_length=len(resp.body),
            body_sample=body_sample(resp.body),
        )
        if self.logger:
            self.logger.finding("env", url, f"HTTP {hit.status}, {hit.content_length} chars")
        return hit

    def probe_all(self, urls: List[str], concurrency: int, name: str) -> List[EnvFileHit]:
        pool = WorkerPool(concurrency, name=name, logger=self.logger)
        return pool.run(self.probe_env, urls)

    # ---------- full scan ----------
    def crawl_and_scan(self, target: str, max_depth: Optional[int] = None) -> HostScanReport:
        """
        One crawl+scan cycle for *target*.

        Raises ValueError for a malformed target and CrawlError when the
        origin cannot be reached at all.
        """
        depth = self.config.max_depth if max_depth is None else max_depth
        origin = normalize_origin(target)

        # Session-scoped collectors, owned by this call only.
        dirs = DirectoryCollector(origin)
        leaks = InlineLeakCollector(origin, logger=self.logger)

        crawler = Crawler(self.client, logger=self.logger, max_depth=depth,
                          max_resources=self.config.max_resources)
        crawler.crawl(origin + "/", [dirs, leaks])

        if self.logger:
            self.logger.info(f"Probing {origin} ({len(dirs.directories)} directories discovered)")

        static_hits = self.probe_all(
            static_candidates(origin), self.config.static_concurrency, "static")
        dir_hits = self.probe_all(
            directory_candidates(dirs.directories), self.config.directory_concurrency, "dirs")

        report = build_report(
            target=target,
            max_depth=depth,
            static_hits=static_hits,
            directory_hits=dir_hits,
            secret_hits=leaks.secret_hits,
            env_inline_hits=leaks.env_inline_hits,
        )
        if self.logger:
            if report.findings_count:
                self.logger.ok(f"{target}: {report.findings_count} findings")
            else:
                self.logger.info(f"{target}: no findings")
        return report
