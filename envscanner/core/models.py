"""Shared data models for the env scanner."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union


def utc_now() -> str:
    """ISO-8601 UTC timestamp used in every report."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# ── Fetch outcomes ─────────────────────────────────────────────

@dataclass(frozen=True)
class Success:
    """A response that came back with a non-error status."""
    url: str
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""


@dataclass(frozen=True)
class TransientFailure:
    """Rate limited, timed out or dropped connection. Worth retrying."""
    reason: str


@dataclass(frozen=True)
class FatalFailure:
    """DNS, TLS, malformed response or a non-retryable status."""
    reason: str


FetchOutcome = Union[Success, TransientFailure, FatalFailure]


# ── Classifier matches ─────────────────────────────────────────

@dataclass
class SecretMatch:
    line_number: int
    matched_text: str
    context_snippet: str

    def to_dict(self) -> dict:
        return {
            "lineNum": self.line_number,
            "key": self.matched_text,
            "snippet": self.context_snippet,
        }


@dataclass
class EnvRefMatch:
    line_number: int
    variable_name: str
    value: Optional[str]       # only the meta-tag pattern captures a value
    context_snippet: str
    pattern: str               # "process_env", "window_env", "meta_env"

    def to_dict(self) -> dict:
        return {
            "lineNum": self.line_number,
            "varName": self.variable_name,
            "value": self.value,
            "snippet": self.context_snippet,
            "pattern": self.pattern,
        }


# ── Findings ───────────────────────────────────────────────────

@dataclass
class EnvFileHit:
    """A probed URL whose body looks like a dotenv file."""
    url: str
    status: int
    content_length: Optional[int]
    body_sample: str = ""

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "status": self.status,
            "contentLength": self.content_length,
            "sample": self.body_sample,
        }


@dataclass
class InlineSecretHit:
    """Up to five ``sk-`` tokens found in one crawled resource."""
    url: str
    matches: List[SecretMatch] = field(default_factory=list)
    content_length: int = 0

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "matches": [m.to_dict() for m in self.matches],
            "contentLength": self.content_length,
        }


@dataclass
class InlineEnvReferenceHit:
    """Up to five inline environment references found in one JS/HTML resource."""
    url: str
    matches: List[EnvRefMatch] = field(default_factory=list)
    content_length: int = 0

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "matches": [m.to_dict() for m in self.matches],
            "contentLength": self.content_length,
        }


# ── Reports ────────────────────────────────────────────────────

@dataclass
class HostScanReport:
    target: str
    max_depth: int
    env_hits: List[EnvFileHit] = field(default_factory=list)
    secret_hits: List[InlineSecretHit] = field(default_factory=list)
    env_inline_hits: List[InlineEnvReferenceHit] = field(default_factory=list)
    scanned_at: str = field(default_factory=utc_now)

    @property
    def findings_count(self) -> int:
        return len(self.env_hits) + len(self.secret_hits) + len(self.env_inline_hits)

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "maxDepth": self.max_depth,
            "findings": {
                "envHits": [h.to_dict() for h in self.env_hits],
                "secretHits": [h.to_dict() for h in self.secret_hits],
                "envInlineHits": [h.to_dict() for h in self.env_inline_hits],
            },
            "scannedAt": self.scanned_at,
        }


@dataclass
class HostOutcome:
    """One line of the batch summary."""
    target: str
    success: bool
    findings_count: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        out = {"target": self.target, "success": self.success}
        if self.success:
            out["findingsCount"] = self.findings_count
        else:
            out["error"] = self.error
        return out


@dataclass
class BatchSummary:
    results: List[HostOutcome] = field(default_factory=list)
    scanned_at: str = field(default_factory=utc_now)

    @property
    def failed(self) -> List[HostOutcome]:
        return [r for r in self.results if not r.success]

    def to_dict(self) -> dict:
        return {
            "scannedAt": self.scanned_at,
            "results": [r.to_dict() for r in self.results],
        }
