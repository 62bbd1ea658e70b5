import gzip

import httpx
import pytest

from conftest import mock_client
from envscanner.core.config import ScanConfig
from envscanner.core.crawler import CrawlError
from envscanner.core.engine import Engine

ENV_BODY = "\n".join(f"KEY_{i}=value{i}" for i in range(37)) + "\n"


def test_single_env_file_at_root():
    def handler(request):
        if request.url.path == "/.env":
            return httpx.Response(200, text=ENV_BODY)
        return httpx.Response(404)

    with Engine(client=mock_client(handler)) as engine:
        report = engine.crawl_and_scan("https://example.test")

    assert [h.url for h in report.env_hits] == ["https://example.test/.env"]
    hit = report.env_hits[0]
    assert hit.status == 200
    assert hit.content_length == len(ENV_BODY)
    assert hit.body_sample.splitlines()[0] == "KEY_0=value0"
    assert report.secret_hits == []
    assert report.env_inline_hits == []


def test_content_length_is_decoded_body_length_for_gzip_responses():
    wire = gzip.compress(ENV_BODY.encode())

    def handler(request):
        if request.url.path == "/.env":
            return httpx.Response(200, content=wire, headers={
                "content-type": "text/plain",
                "content-encoding": "gzip",
                "content-length": str(len(wire)),
            })
        return httpx.Response(404)

    with Engine(client=mock_client(handler)) as engine:
        report = engine.crawl_and_scan("https://example.test")

    hit = report.env_hits[0]
    assert len(wire) != len(ENV_BODY)
    assert hit.content_length == len(ENV_BODY)
    assert hit.to_dict()["contentLength"] == len(ENV_BODY)


def test_unreachable_origin_raises_crawl_error():
    def handler(request):
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    with Engine(client=mock_client(handler)) as engine:
        with pytest.raises(CrawlError):
            engine.crawl_and_scan("down.test")


def test_malformed_target_raises_value_error():
    with Engine(client=mock_client(lambda r: httpx.Response(404))) as engine:
        with pytest.raises(ValueError):
            engine.crawl_and_scan("ftp://files.test")


# ── against the leak lab ───────────────────────────────────────

@pytest.fixture
def lab_report(lab_client, log):
    engine = Engine(ScanConfig(max_depth=2), logger=log, client=lab_client)
    return engine.crawl_and_scan("lab.test")


def test_lab_env_hits_from_dictionary_and_discovered_dirs(lab_report):
    urls = sorted(h.url for h in lab_report.env_hits)
    assert urls == ["https://lab.test/.env", "https://lab.test/app/.env"]


def test_lab_decoys_are_not_hits(lab_report):
    urls = {h.url for h in lab_report.env_hits}
    assert "https://lab.test/config/.env" not in urls
    assert "https://lab.test/backup/.env" not in urls


def test_lab_inline_findings(lab_report):
    assert [h.url for h in lab_report.secret_hits] == ["https://lab.test/static/js/app.js"]
    by_url = {h.url: h for h in lab_report.env_inline_hits}
    assert set(by_url) == {"https://lab.test/static/js/app.js", "https://lab.test/docs/index.html"}
    js = by_url["https://lab.test/static/js/app.js"]
    assert [(m.line_number, m.variable_name) for m in js.matches] == [
        (1, "API_BASE_URL"), (5, "DATABASE_URL")]
    docs = {m.pattern: m for m in by_url["https://lab.test/docs/index.html"].matches}
    assert docs["meta_env"].value == "staging"
    assert docs["window_env"].variable_name == "appEnv"


def test_lab_offsite_redirect_does_not_leak(lab_report):
    everything = str(lab_report.to_dict())
    assert "elsewhere.test" not in everything
    assert "other.test" not in everything


def test_lab_report_shape(lab_report):
    doc = lab_report.to_dict()
    assert doc["target"] == "lab.test"
    assert doc["maxDepth"] == 2
    assert set(doc["findings"]) == {"envHits", "secretHits", "envInlineHits"}
    assert lab_report.findings_count == 5
