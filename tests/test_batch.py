import json

import pytest

from envscanner.core.batch import BatchError, BatchRunner
from envscanner.core.config import ScanConfig
from envscanner.core.crawler import CrawlError
from envscanner.core.engine import Engine
from envscanner.core.models import EnvFileHit, HostScanReport

HOSTS = "example.com\n# comment\nnot a domain\nsub.example.org:8443\n"


class StubEngine:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.scanned = []

    def crawl_and_scan(self, target, max_depth=None):
        self.scanned.append((target, max_depth))
        if target in self.failing:
            raise CrawlError(f"Could not fetch {target}/")
        return HostScanReport(target=target, max_depth=max_depth, env_hits=[
            EnvFileHit(url=target + "/.env", status=200, content_length=12)])


@pytest.fixture
def hosts_file(tmp_path):
    path = tmp_path / "hosts.txt"
    path.write_text(HOSTS, encoding="utf-8")
    return path


def test_batch_cleans_resolves_and_rewrites_host_list(hosts_file, tmp_path, log):
    engine = StubEngine()
    runner = BatchRunner(engine, ScanConfig(), log, resolver=lambda h: True)
    summary = runner.run(hosts_file, tmp_path / "out", max_depth=1)

    assert hosts_file.read_text(encoding="utf-8") == "example.com\nsub.example.org:8443\n"
    assert sorted(t for t, _ in engine.scanned) == [
        "https://example.com", "https://sub.example.org:8443"]
    assert all(depth == 1 for _, depth in engine.scanned)
    assert sorted(r.target for r in summary.results if r.success) == [
        "https://example.com", "https://sub.example.org:8443"]
    assert all(r.findings_count == 1 for r in summary.results)


def test_batch_writes_reports_and_summary(hosts_file, tmp_path):
    out = tmp_path / "out"
    BatchRunner(StubEngine(), resolver=lambda h: True).run(hosts_file, out)

    reports = sorted(p.name for p in out.glob("env-scan-*.json"))
    assert len(reports) == 2
    assert reports[0].startswith("env-scan-example.com-")
    assert reports[1].startswith("env-scan-sub.example.org%3A8443-")

    doc = json.loads((out / reports[0]).read_text(encoding="utf-8"))
    assert doc["target"] == "https://example.com"
    assert doc["findings"]["envHits"][0]["url"] == "https://example.com/.env"

    summary = json.loads((out / "summary.json").read_text(encoding="utf-8"))
    assert "scannedAt" in summary
    assert {r["target"]: r["findingsCount"] for r in summary["results"]} == {
        "https://example.com": 1, "https://sub.example.org:8443": 1}


def test_unresolvable_hosts_are_dropped(hosts_file, tmp_path, log):
    engine = StubEngine()
    runner = BatchRunner(engine, ScanConfig(), log, resolver=lambda h: h == "example.com")
    summary = runner.run(hosts_file, tmp_path / "out")
    assert [r.target for r in summary.results] == ["https://example.com"]
    assert hosts_file.read_text(encoding="utf-8") == "example.com\n"


def test_host_failure_is_recorded_not_raised(hosts_file, tmp_path, log):
    engine = StubEngine(failing={"https://example.com"})
    runner = BatchRunner(engine, ScanConfig(), log, resolver=lambda h: True)
    summary = runner.run(hosts_file, tmp_path / "out")

    by_target = {r.target: r for r in summary.results}
    failed = by_target["https://example.com"]
    assert failed.success is False
    assert "Could not fetch" in failed.error
    assert by_target["https://sub.example.org:8443"].success is True
    assert summary.failed == [failed]
    assert failed.to_dict() == {"target": "https://example.com", "success": False,
                                "error": failed.error}


def test_no_dns_leaves_host_list_alone(hosts_file, tmp_path):
    def resolver(host):
        raise AssertionError("resolver must not be called")

    runner = BatchRunner(StubEngine(), ScanConfig(resolve_dns=False), resolver=resolver)
    summary = runner.run(hosts_file, tmp_path / "out")
    assert len(summary.results) == 2
    assert hosts_file.read_text(encoding="utf-8") == HOSTS


def test_missing_host_list_is_fatal(tmp_path):
    with pytest.raises(BatchError):
        BatchRunner(StubEngine()).run(tmp_path / "nope.txt", tmp_path / "out")


def test_uncreatable_output_dir_is_fatal(hosts_file, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    runner = BatchRunner(StubEngine(), ScanConfig(resolve_dns=False))
    with pytest.raises(BatchError):
        runner.run(hosts_file, blocker / "out")


def test_host_list_untouched_when_output_dir_fails(hosts_file, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    engine = StubEngine()
    runner = BatchRunner(engine, ScanConfig(), resolver=lambda host: True)
    with pytest.raises(BatchError):
        runner.run(hosts_file, blocker / "out")
    assert hosts_file.read_text(encoding="utf-8") == HOSTS
    assert engine.scanned == []


def test_batch_against_leak_lab(tmp_path, lab_client, log):
    hosts = tmp_path / "hosts.txt"
    hosts.write_text("lab.test\n", encoding="utf-8")
    engine = Engine(ScanConfig(), logger=log, client=lab_client)
    summary = BatchRunner(engine, ScanConfig(), log, resolver=lambda h: True).run(
        hosts, tmp_path / "out", max_depth=2)
    assert [r.to_dict() for r in summary.results] == [
        {"target": "https://lab.test", "success": True, "findingsCount": 5}]
