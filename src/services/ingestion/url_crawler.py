"""Same-site web crawler that streams page text for URL ingestion.

# ─── DESIGN ────────────────────────────────────────────────────────────
#
# UrlCrawler supports two modes:
#
#   1. fetch_single(url): fetch exactly one page; returns [] when the
#      response is not HTML or has no visible text.  Fetch errors
#      propagate so the pipeline records the failure.
#
#   2. crawl(root_url, max_depth): breadth-first crawl yielding pages one
#      at a time as an async generator, so the consumer can flush
#      embeddings every N pages without holding the whole site in memory.
#      depth=0 → only the root; depth=1 → root + direct links; ...
#
# Both modes:
#   - Skip responses whose Content-Type is not text/html
#   - Strip boilerplate (nav, footer, scripts, forms) with BeautifulSoup
#
# Crawl mode additionally:
#   - Skips static assets (by URL path extension) before any request
#   - Follows same-host http(s) links only, fragments stripped
#   - Deduplicates URLs within one invocation (fresh seen-set per crawl)
#   - Fetches sequentially, one page at a time
#   - Logs and skips per-page failures (network, timeout, HTTP >= 400)
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import re
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urldefrag, urljoin, urlparse

import httpx
import structlog
from bs4 import BeautifulSoup

from src.models.ingestion import FetchedPage
from src.utils.errors import DocumentLoadError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_USER_AGENT = "KnowledgeIndexerBot/1.0 (knowledge indexer)"
DEFAULT_TIMEOUT = 30.0

# File extensions that are never HTML content pages.
STATIC_EXTENSIONS = frozenset(
    {
        # styles / scripts
        "css", "js", "mjs", "cjs", "map",
        # images
        "png", "jpg", "jpeg", "gif", "webp", "svg", "ico", "bmp", "avif", "tiff",
        # fonts
        "woff", "woff2", "ttf", "eot", "otf",
        # archives / binaries
        "zip", "gz", "tar", "rar", "7z", "exe", "dmg", "pkg", "deb", "rpm",
        # media
        "mp3", "mp4", "webm", "ogg", "wav", "avi", "mov", "mkv", "flac",
        # documents (ingested through the file pipeline instead)
        "pdf", "docx", "doc", "xlsx", "pptx",
        # data
        "json", "xml", "csv", "yaml", "yml",
    }
)  # fmt: skip

_BOILERPLATE_TAGS = ["script", "style", "noscript", "nav", "footer", "header", "aside", "form", "iframe"]
_INLINE_SPACE = re.compile(r"[ \t]+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def is_static_asset_url(url: str) -> bool:
    """Return ``True`` if the URL path ends with a known static-asset extension."""
    try:
        path = urlparse(url).path
    except ValueError:
        return False
    ext = path.rsplit(".", 1)[-1].lower()
    return ext in STATIC_EXTENSIONS


def html_to_text(html: str | BeautifulSoup) -> str:
    """Strip boilerplate elements and return the body's visible text.

    Runs of spaces/tabs collapse to one space and 3+ newlines to two.
    Mutates *html* when given a parsed soup.
    """
    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(_BOILERPLATE_TAGS):
        tag.decompose()
    root = soup.body or soup
    text = _INLINE_SPACE.sub(" ", root.get_text())
    return _EXCESS_NEWLINES.sub("\n\n", text).strip()


def extract_links(html: str | BeautifulSoup, page_url: str) -> list[str]:
    """Return same-host absolute http(s) links on the page, in document order.

    Fragments are stripped, static assets and malformed hrefs skipped,
    duplicates removed.
    """
    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, "html.parser")
    base_host = urlparse(page_url).hostname
    links: dict[str, None] = {}

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href:
            continue
        try:
            resolved = urljoin(page_url, href)
            parsed = urlparse(resolved)
            host = parsed.hostname
        except ValueError:
            continue
        if host != base_host or not parsed.scheme.startswith("http"):
            continue
        if is_static_asset_url(resolved):
            continue
        links[urldefrag(resolved).url] = None

    return list(links)


# ---------------------------------------------------------------------------
# Crawler
# ---------------------------------------------------------------------------

class UrlCrawler:
    """Fetches web pages and extracts their text.

    Parameters
    ----------
    http_client:
        Optional shared ``httpx.AsyncClient``.  When omitted the crawler
        opens (and closes) its own client per call.
    timeout:
        Per-request timeout in seconds.
    user_agent:
        ``User-Agent`` header sent with every request.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._http_client = http_client
        self._timeout = timeout
        self._user_agent = user_agent

    async def fetch_single(self, url: str) -> list[FetchedPage]:
        """Fetch only *url*; returns one page, or none when it has no HTML text.

        Raises
        ------
        DocumentLoadError
            If the request fails or returns an HTTP error status.
        """
        url = urldefrag(url).url
        async with self._client() as client:
            try:
                html = await self._get_html(client, url)
            except httpx.HTTPError as exc:
                raise DocumentLoadError(
                    message=f"Failed to fetch {url}: {exc}",
                    provider_name="http",
                ) from exc

        if html is None:
            logger.info("page_skipped_non_html", url=url)
            return []
        text = html_to_text(html)
        return [FetchedPage(url=url, text=text)] if text else []

    async def crawl(self, root_url: str, max_depth: int) -> AsyncIterator[FetchedPage]:
        """Breadth-first crawl from *root_url*, yielding pages as they arrive.

        Each reachable same-host URL within *max_depth* hops is fetched at
        most once.  Pages with no visible text are not yielded, but their
        links are still followed.
        """
        root = urldefrag(root_url).url
        seen: set[str] = {root}
        frontier: deque[tuple[str, int]] = deque([(root, 0)])
        fetched = 0
        yielded = 0

        async with self._client() as client:
            while frontier:
                url, depth = frontier.popleft()
                if is_static_asset_url(url):
                    logger.debug("crawl_skip_static_asset", url=url)
                    continue

                try:
                    html = await self._get_html(client, url)
                    fetched += 1
                    if html is None:
                        logger.debug("crawl_skip_non_html", url=url)
                        continue

                    soup = BeautifulSoup(html, "html.parser")
                    links = extract_links(soup, url) if depth < max_depth else []
                    text = html_to_text(soup)
                except Exception as exc:
                    logger.warning("crawl_page_failed", url=url, depth=depth, error=str(exc))
                    continue

                for link in links:
                    if link not in seen:
                        seen.add(link)
                        frontier.append((link, depth + 1))

                if text:
                    yielded += 1
                    logger.debug("crawl_page_yielded", url=url, depth=depth, page_number=yielded)
                    yield FetchedPage(url=url, text=text)

        logger.info(
            "crawl_complete",
            root_url=root,
            max_depth=max_depth,
            pages_fetched=fetched,
            pages_yielded=yielded,
            urls_seen=len(seen),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            headers={"User-Agent": self._user_agent},
        ) as client:
            yield client

    async def _get_html(self, client: httpx.AsyncClient, url: str) -> str | None:
        """GET *url*; ``None`` when the response is not ``text/html``."""
        response = await client.get(
            url,
            headers={"User-Agent": self._user_agent, "Accept": "text/html"},
        )
        response.raise_for_status()
        content_type = response.headers.get("content-type", "").lower()
        if "text/html" not in content_type:
            return None
        return response.text
