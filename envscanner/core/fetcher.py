"""Fetcher — single GET with failure classification, retry driver and light probe."""

import random
import socket
import ssl
import time
from typing import Dict, Iterator, List, Optional

import httpx

from envscanner.core.config import MAX_BODY_SIZE
from envscanner.core.models import FatalFailure, FetchOutcome, Success, TransientFailure

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; envscanner/1.0)"

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:89.0) Gecko/20100101 Firefox/89.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/14.1.1 Safari/605.1.15",
]

TRANSIENT_STATUSES = {429, 502, 503}

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated",
)

_BINARY_TYPES = (
    "image/", "audio/", "video/", "font/",
    "application/octet-stream", "application/zip", "application/gzip",
    "application/pdf", "application/x-tar", "application/wasm",
)


# ── Classification helpers ─────────────────────────────────────

def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        yield exc
        exc = exc.__cause__ or exc.__context__


def is_dns_failure(exc: BaseException) -> bool:
    for e in _exception_chain(exc):
        if isinstance(e, socket.gaierror):
            return True
        if any(m in str(e).lower() for m in _DNS_MARKERS):
            return True
    return False


def is_tls_failure(exc: BaseException) -> bool:
    for e in _exception_chain(exc):
        if isinstance(e, ssl.SSLError):
            return True
        msg = str(e)
        if "CERTIFICATE_VERIFY_FAILED" in msg or "[SSL" in msg:
            return True
    return False


def classify_exception(exc: Exception) -> FetchOutcome:
    """Map an httpx exception onto the transient / fatal taxonomy."""
    reason = f"{type(exc).__name__}: {exc}"
    if isinstance(exc, httpx.TimeoutException):
        return TransientFailure(reason)
    if isinstance(exc, (httpx.RemoteProtocolError, httpx.DecodingError,
                        httpx.TooManyRedirects, httpx.UnsupportedProtocol,
                        httpx.InvalidURL)):
        return FatalFailure(reason)
    if isinstance(exc, httpx.TransportError):
        if is_dns_failure(exc) or is_tls_failure(exc):
            return FatalFailure(reason)
        return TransientFailure(reason)
    return FatalFailure(reason)


def classify_status(url: str, resp: httpx.Response) -> FetchOutcome:
    if resp.status_code in TRANSIENT_STATUSES:
        return TransientFailure(f"HTTP {resp.status_code}")
    if resp.status_code >= 400:
        return FatalFailure(f"HTTP {resp.status_code}")
    return Success(url=str(resp.url) or url, status=resp.status_code,
                   headers=dict(resp.headers), body=resp.text)


def is_textual(resp: httpx.Response) -> bool:
    ctype = resp.headers.get("content-type", "").lower()
    if any(ctype.startswith(t) for t in _BINARY_TYPES):
        return False
    return b"\x00" not in resp.content[:1024]


# ── Fetcher ────────────────────────────────────────────────────

class Fetcher:
    """
    HTTP GET wrapper shared by the probe passes and the CT harvester.

    Usage:
        fetcher = Fetcher(timeout=120, rotate_user_agent=True, logger=log)
        outcome = fetcher.fetch_with_retry("https://crt.sh/?q=%25.io&output=json")
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: float = 5.0,
        max_retries: int = 5,
        base_delay: float = 5.0,
        jitter: float = 1.0,
        max_redirects: int = 3,
        max_body_size: int = MAX_BODY_SIZE,
        user_agents: Optional[List[str]] = None,
        rotate_user_agent: bool = False,
        proxy: Optional[str] = None,
        verify: bool = False,
        logger=None,
        sleep=time.sleep,
        rng: Optional[random.Random] = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.Client(
            verify=verify, proxy=proxy, follow_redirects=True,
            max_redirects=max_redirects, timeout=timeout)
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.jitter = jitter
        self.max_body_size = max_body_size
        self.user_agents = user_agents or USER_AGENTS
        self.rotate_user_agent = rotate_user_agent
        self.logger = logger
        self.sleep = sleep
        self.rng = rng or random.Random()

    def close(self):
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _headers(self, extra: Optional[Dict[str, str]]) -> Dict[str, str]:
        ua = self.rng.choice(self.user_agents) if self.rotate_user_agent else DEFAULT_USER_AGENT
        headers = {"User-Agent": ua}
        if extra:
            headers.update(extra)
        return headers

    def fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> FetchOutcome:
        """One attempt. Never raises for network problems."""
        try:
            resp = self.client.get(url, headers=self._headers(headers), timeout=self.timeout)
        except httpx.HTTPError as exc:
            return classify_exception(exc)
        except httpx.InvalidURL as exc:
            return FatalFailure(f"InvalidURL: {exc}")
        return classify_status(url, resp)

    def backoff(self, attempt: int) -> float:
        """Delay before retry number *attempt* (1-based)."""
        delay = (2 ** attempt) * self.base_delay
        if self.jitter > 0:
            delay += self.rng.uniform(0, self.jitter)
        return delay

    def fetch_with_retry(self, url: str, headers: Optional[Dict[str, str]] = None) -> FetchOutcome:
        """
        Retry transient outcomes with exponential backoff.

        At most ``max_retries + 1`` attempts. A fatal outcome is returned at
        once; on exhaustion the last transient outcome is returned.
        """
        retries = 0
        while True:
            if self.logger:
                self.logger.debug(f"GET {url} (attempt {retries + 1})")
            outcome = self.fetch(url, headers)
            if not isinstance(outcome, TransientFailure):
                return outcome
            if retries >= self.max_retries:
                if self.logger:
                    self.logger.fail(f"Max retries exceeded for {url}: {outcome.reason}")
                return outcome
            retries += 1
            delay = self.backoff(retries)
            if self.logger:
                self.logger.warn(
                    f"Retry {retries}/{self.max_retries} for {url} after {outcome.reason} "
                    f"(sleeping {delay:.1f}s)")
            self.sleep(delay)

    def probe(self, url: str) -> Optional[Success]:
        """
        Single-shot GET for speculative paths.

        Anything other than a 200 with a textual body under the size cap is
        reported as None; speculative probes are never retried.
        """
        try:
            resp = self.client.get(url, headers=self._headers(None), timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            if self.logger:
                self.logger.debug(f"Probe failed: {url} ({type(exc).__name__})")
            return None
        if resp.status_code != 200 or not is_textual(resp):
            return None
        body = resp.text
        if len(body) > self.max_body_size:
            return None
        return Success(url=url, status=resp.status_code,
                       headers=dict(resp.headers), body=body)
