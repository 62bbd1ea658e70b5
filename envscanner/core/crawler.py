"""Crawler — bounded BFS mirror that reports every retrieved resource to listeners."""

from collections import deque
from html.parser import HTMLParser
from typing import Deque, List, Optional, Sequence, Set, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

import httpx

from envscanner.core.discovery import ResourceListener, is_same_origin
from envscanner.core.fetcher import is_textual


class CrawlError(Exception):
    """The seed URL could not be retrieved at all."""


# ── HTML parser ────────────────────────────────────────────────

_LINK_ATTRS = {
    "a": "href",
    "area": "href",
    "link": "href",
    "form": "action",
    "script": "src",
    "img": "src",
    "iframe": "src",
    "source": "src",
}

# Linkage that points at further pages, as opposed to page assets.
_PAGE_TAGS = {"a", "area", "form", "iframe"}


class _LinkExtractor(HTMLParser):
    """Collect (tag, url) pairs for every tag that references another resource."""

    def __init__(self):
        super().__init__()
        self.links: List[Tuple[str, str]] = []

    def handle_starttag(self, tag, attrs):
        wanted = _LINK_ATTRS.get(tag)
        if not wanted:
            return
        for name, value in attrs:
            if name == wanted and value:
                self.links.append((tag, value.strip()))


# ── Helper functions ───────────────────────────────────────────

def extract_links(html: str) -> List[Tuple[str, str]]:
    parser = _LinkExtractor()
    try:
        parser.feed(html)
    except Exception:
        pass
    return parser.links


def normalize_url(url: str) -> str:
    """Drop the fragment; keep the query, since it may select another resource."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", parts.query, ""))


_BINARY_EXT = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".avif",
               ".bmp", ".woff", ".woff2", ".ttf", ".eot", ".otf", ".pdf", ".zip",
               ".tar", ".gz", ".rar", ".7z", ".mp4", ".mp3", ".webm", ".avi",
               ".mov", ".wav", ".exe", ".dmg", ".iso")


def should_skip_url(url: str) -> bool:
    """Skip non-HTTP schemes and binary assets, which are never fetched."""
    lower = url.lower()
    if any(lower.startswith(s) for s in ("javascript:", "mailto:", "tel:", "data:", "#")):
        return True
    try:
        parts = urlsplit(url)
    except ValueError:
        return True
    if parts.scheme not in ("http", "https"):
        return True
    return parts.path.lower().endswith(_BINARY_EXT)


def is_html(resp: httpx.Response) -> bool:
    ctype = resp.headers.get("content-type", "").lower()
    return "text/html" in ctype or "application/xhtml" in ctype


# ── Crawler class ──────────────────────────────────────────────

class Crawler:
    """
    BFS crawler over one origin.

    HTML pages are parsed for linkage while their depth is below
    ``max_depth``; scripts, stylesheets and other text assets are fetched
    and reported but never parsed. Every retrieved resource fires
    ``on_resource_saved(url, is_text, body)`` on each listener, with the
    post-redirect URL so listeners can drop cross-origin redirects.

    Usage:
        crawler = Crawler(client, logger, max_depth=2)
        crawler.crawl("https://example.com", [dirs, leaks])
    """

    def __init__(self, client: httpx.Client, logger=None, max_depth: int = 2,
                 max_resources: int = 200):
        self.client = client
        self.logger = logger
        self.max_depth = max_depth
        self.max_resources = max_resources

    def crawl(self, start_url: str, listeners: Sequence[ResourceListener]) -> int:
        """Crawl from *start_url*; return the number of resources retrieved."""
        visited: Set[str] = set()
        # (url, depth, is_page)
        queue: Deque[Tuple[str, int, bool]] = deque([(start_url, 0, True)])
        retrieved = 0

        if self.logger:
            self.logger.info(f"Crawling {start_url} (max depth: {self.max_depth})")

        while queue and retrieved < self.max_resources:
            url, depth, is_page = queue.popleft()

            norm = normalize_url(url)
            if norm in visited:
                continue
            visited.add(norm)

            if self.logger:
                self.logger.debug(f"Visiting [{depth}] {url}")

            resp = self._fetch(url, seed=(retrieved == 0 and url == start_url))
            if resp is None:
                continue
            retrieved += 1

            final_url = str(resp.url)
            text = resp.text if is_textual(resp) else None
            self._notify(listeners, final_url, text)

            if not is_page or text is None or not is_html(resp) or depth >= self.max_depth:
                continue
            if not is_same_origin(start_url, final_url):
                continue

            for tag, href in extract_links(text):
                abs_url = urljoin(final_url, href)
                if should_skip_url(abs_url) or not is_same_origin(start_url, abs_url):
                    continue
                if normalize_url(abs_url) in visited:
                    continue
                queue.append((abs_url, depth + 1, tag in _PAGE_TAGS))

        if self.logger:
            self.logger.info(f"Crawl complete: {retrieved} resources retrieved from {start_url}")
        return retrieved

    # ── Internal helpers ───────────────────────────────────────

    def _notify(self, listeners: Sequence[ResourceListener], url: str, text: Optional[str]):
        for listener in listeners:
            try:
                listener.on_resource_saved(url, text is not None, text)
            except Exception as exc:
                if self.logger:
                    self.logger.warn(f"Listener failed on {url}: {exc}")

    def _fetch(self, url: str, seed: bool = False) -> Optional[httpx.Response]:
        """GET a URL; None on error status or transport error (CrawlError for the seed)."""
        try:
            resp = self.client.get(url, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            if seed:
                raise CrawlError(f"Could not fetch {url}: {exc}") from exc
            if self.logger:
                self.logger.warn(f"Crawl fetch failed: {url} ({exc})")
            return None
        if resp.status_code >= 400:
            if self.logger:
                self.logger.debug(f"Skipping {url} (HTTP {resp.status_code})")
            return None
        return resp
