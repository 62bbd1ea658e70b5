"""Batch runner — clean a host list, scan every host, write per-host and summary reports."""

import socket
import threading
from pathlib import Path
from typing import Callable, List, Optional, Union

from envscanner.core.config import ScanConfig
from envscanner.core.models import BatchSummary, HostOutcome
from envscanner.core.pool import WorkerPool
from envscanner.parsers.hosts import (
    clean_hosts, hostname_of, normalize_target, read_host_list, strip_scheme, write_host_list,
)
from envscanner.reporters.json_report import write_host_report, write_summary


class BatchError(Exception):
    """The run as a whole cannot proceed (host list unreadable, no output dir)."""


def resolve_host(host: str) -> bool:
    """True when the hostname (port stripped) resolves to at least one address."""
    try:
        return bool(socket.getaddrinfo(hostname_of(host), None))
    except (socket.gaierror, OSError, UnicodeError):
        return False


class BatchRunner:
    """
    Drives one crawl+scan cycle per host through a bounded pool.

    A failure on one host never aborts the batch; it becomes a
    ``success: false`` entry in the summary.

    Usage:
        runner = BatchRunner(Engine(config, log), config, log)
        summary = runner.run("hosts.txt", "scan-results", max_depth=1)
    """

    def __init__(self, engine, config: Optional[ScanConfig] = None, logger=None,
                 resolver: Callable[[str], bool] = resolve_host):
        self.engine = engine
        self.config = config or ScanConfig()
        self.logger = logger
        self.resolver = resolver

    # ---------- host list ----------
    def load_hosts(self, hosts_file: Union[str, Path]) -> List[str]:
        try:
            lines = read_host_list(hosts_file)
        except OSError as exc:
            raise BatchError(f"Cannot read host list {hosts_file}: {exc}") from exc
        hosts = clean_hosts(lines)
        if self.logger:
            dropped = len([l for l in lines if l.strip()]) - len(hosts)
            self.logger.info(f"{len(hosts)} clean hosts in {hosts_file} ({dropped} lines dropped)")
        return hosts

    def resolve_hosts(self, hosts: List[str]) -> List[str]:
        """Drop unresolvable hosts, keeping input order."""
        def check(host: str) -> Optional[str]:
            if self.resolver(host):
                return host
            if self.logger:
                self.logger.warn(f"Skipping unresolvable domain: {host}")
            return None

        pool = WorkerPool(self.config.dns_concurrency, name="dns", logger=self.logger)
        resolvable = set(pool.run(check, hosts))
        return [h for h in hosts if h in resolvable]

    def prepare(self, hosts_file: Union[str, Path]) -> List[str]:
        hosts = self.load_hosts(hosts_file)
        if self.config.resolve_dns:
            hosts = self.resolve_hosts(hosts)
            # Self-cleaning: the next run starts from the resolvable list.
            try:
                write_host_list(hosts_file, [strip_scheme(h) for h in hosts])
            except OSError as exc:
                raise BatchError(f"Cannot rewrite host list {hosts_file}: {exc}") from exc
            if self.logger:
                self.logger.ok(f"Cleaned and updated {hosts_file} with {len(hosts)} hosts")
        return hosts

    # ---------- scanning ----------
    def scan_host(self, host: str, out_dir: Path, max_depth: int) -> HostOutcome:
        target = normalize_target(host)
        worker = threading.current_thread().name
        try:
            report = self.engine.crawl_and_scan(target, max_depth)
            path = write_host_report(out_dir, strip_scheme(host), report)
        except Exception as exc:
            if self.logger:
                self.logger.fail(f"[{worker}] error on {target}: {exc}")
            return HostOutcome(target=target, success=False, error=str(exc) or type(exc).__name__)
        if self.logger:
            self.logger.info(
                f"[{worker}] scanned {target} -> {report.findings_count} findings ({path})")
        return HostOutcome(target=target, success=True, findings_count=report.findings_count)

    def run(self, hosts_file: Union[str, Path], out_dir: Union[str, Path],
            max_depth: int = 1) -> BatchSummary:
        out_dir = Path(out_dir)
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BatchError(f"Cannot create output directory {out_dir}: {exc}") from exc

        hosts = self.prepare(hosts_file)

        pool = WorkerPool(self.config.batch_concurrency, name="worker", logger=self.logger)
        outcomes = pool.run(lambda h: self.scan_host(h, out_dir, max_depth), hosts)

        summary = BatchSummary(results=outcomes)
        try:
            path = write_summary(out_dir, summary)
        except OSError as exc:
            raise BatchError(f"Cannot write summary to {out_dir}: {exc}") from exc
        if self.logger:
            failed = len(summary.failed)
            self.logger.ok(f"Wrote summary to {path} ({len(outcomes)} hosts, {failed} failed)")
        return summary
