import json
import time
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote

from envscanner.core.models import BatchSummary, HostScanReport

SUMMARY_FILENAME = "summary.json"


def write_json(path: Union[str, Path], payload: dict) -> Path:
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
        f.write("\n")
    return path


def host_report_filename(host: str, now_ms: Optional[int] = None) -> str:
    """``env-scan-<url-quoted host>-<epoch ms>.json``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"env-scan-{quote(host, safe='')}-{now_ms}.json"


def write_host_report(out_dir: Union[str, Path], host: str, report: HostScanReport,
                      now_ms: Optional[int] = None) -> Path:
    return write_json(Path(out_dir) / host_report_filename(host, now_ms), report.to_dict())


def write_summary(out_dir: Union[str, Path], summary: BatchSummary) -> Path:
    return write_json(Path(out_dir) / SUMMARY_FILENAME, summary.to_dict())
