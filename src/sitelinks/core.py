"""
Core crawling logic and data structures.

Each discovered in-scope URL gets its own worker task on a thread pool. A
worker takes a fetch gate permit, records the visit, fetches the page and
submits one child task per same-origin link. The crawl is finished when the
lifecycle tracker drains to zero.
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from sitelinks.fetcher import DEFAULT_TIMEOUT_S, DEFAULT_USER_AGENT, FetchError, PageFetcher
from sitelinks.links import extract_links
from sitelinks.sync import FetchGate, LifecycleTracker, VisitedRegistry, rank_pages
from sitelinks.urls import is_same_origin, normalize_url

logger = logging.getLogger(__name__)

FetchFunc = Callable[[str], str]


@dataclass(frozen=True, slots=True)
class CrawlConfig:
    """Settings for one crawl. Immutable once built."""
    base_url: str
    max_concurrency: int
    max_pages: int
    timeout_s: float = DEFAULT_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    max_depth: Optional[int] = None

    def __post_init__(self) -> None:
        if normalize_url(self.base_url) is None:
            raise ValueError(f"Invalid start URL: {self.base_url}")
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {self.max_concurrency}")
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {self.max_pages}")
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during crawl for summary output."""
    pages_fetched: int = 0
    invalid_urls: int = 0
    skipped_over_cap: int = 0
    skipped_too_deep: int = 0
    error_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_error(self, status_code: Optional[int]) -> None:
        """Record an error by status code category."""
        with self._lock:
            if status_code is None:
                self.error_counts["connection_error"] += 1
            else:
                self.error_counts[str(status_code)] += 1

    def record_fetch(self) -> None:
        with self._lock:
            self.pages_fetched += 1

    def record_invalid(self) -> None:
        with self._lock:
            self.invalid_urls += 1

    def record_over_cap(self) -> None:
        with self._lock:
            self.skipped_over_cap += 1

    def record_too_deep(self) -> None:
        with self._lock:
            self.skipped_too_deep += 1

    @property
    def total_errors(self) -> int:
        with self._lock:
            return sum(self.error_counts.values())


@dataclass(slots=True)
class CrawlResult:
    """Pages found by a finished crawl, keyed by canonical URL."""
    base_url: str
    pages: Dict[str, int]
    stats: CrawlStats
    started_at: str
    finished_at: str

    def ranked(self) -> List[Tuple[str, int]]:
        return rank_pages(self.pages)


def utc_now_iso() -> str:
    """Return current UTC time in ISO format."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class Crawler:
    """
    Concurrent same-host crawler counting inbound links per page.

    Args:
        config: Crawl settings.
        fetch: Callable returning the HTML body for a URL and raising
               FetchError on failure. Defaults to a PageFetcher built from
               config.
    """

    def __init__(self, config: CrawlConfig, fetch: Optional[FetchFunc] = None) -> None:
        self.config = config
        self._owns_fetcher = fetch is None
        self._fetch: FetchFunc = fetch or PageFetcher(config.timeout_s, config.user_agent)
        self.registry = VisitedRegistry()
        self.gate = FetchGate(config.max_concurrency)
        self.tracker = LifecycleTracker()
        self.stats = CrawlStats()
        self._executor: Optional[ThreadPoolExecutor] = None

    def run(self) -> CrawlResult:
        """Crawl from the configured base URL and block until done."""
        started_at = utc_now_iso()
        logger.info(
            "Starting crawl of %s (max_concurrency=%d, max_pages=%d)",
            self.config.base_url, self.config.max_concurrency, self.config.max_pages,
        )

        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_concurrency,
            thread_name_prefix="crawl-worker",
        )
        try:
            self._spawn(self.config.base_url, 0)
            self.tracker.wait()
        finally:
            self._executor.shutdown(wait=True)
            self._executor = None
            if self._owns_fetcher and isinstance(self._fetch, PageFetcher):
                self._fetch.close()

        pages = self.registry.snapshot()
        logger.info(
            "Crawl complete: %d pages recorded, %d fetched, %d fetch errors",
            len(pages), self.stats.pages_fetched, self.stats.total_errors,
        )
        return CrawlResult(
            base_url=self.config.base_url,
            pages=pages,
            stats=self.stats,
            started_at=started_at,
            finished_at=utc_now_iso(),
        )

    def _spawn(self, raw_url: str, depth: int) -> None:
        self.tracker.add()
        try:
            self._executor.submit(self._visit, raw_url, depth)
        except RuntimeError:
            self.tracker.done()
            raise

    def _visit(self, raw_url: str, depth: int) -> None:
        """Run one worker for raw_url, found depth links away from the seed. Never raises."""
        self.gate.acquire()
        try:
            self._process(raw_url, depth)
        except Exception:
            logger.exception("Unexpected error while crawling %s", raw_url)
        finally:
            self.gate.release()
            self.tracker.done()

    def _process(self, raw_url: str, depth: int) -> None:
        base_url = self.config.base_url
        max_depth = self.config.max_depth

        if max_depth is not None and depth > max_depth:
            logger.debug("Depth limit reached, skipping %s (depth %d)", raw_url, depth)
            self.stats.record_too_deep()
            return

        if self.registry.size() >= self.config.max_pages:
            logger.debug("Page limit reached, skipping %s", raw_url)
            self.stats.record_over_cap()
            return

        canonical = normalize_url(raw_url)
        if canonical is None:
            logger.debug("Skipping unparseable URL: %s", raw_url)
            self.stats.record_invalid()
            return

        if not self.registry.record_visit(canonical):
            logger.debug("Already visited: %s", canonical)
            return

        logger.debug("Visiting %s", canonical)
        try:
            html = self._fetch(raw_url)
        except FetchError as e:
            logger.warning("Fetch failed for %s", e)
            self.stats.record_error(e.status_code)
            return
        self.stats.record_fetch()

        links = extract_links(html, base_url)
        spawned = 0
        for link in links:
            if link == raw_url or not is_same_origin(base_url, link):
                continue
            self._spawn(link, depth + 1)
            spawned += 1
        logger.debug("%s: %d links, %d followed", raw_url, len(links), spawned)


def crawl(
    base_url: str,
    max_concurrency: int,
    max_pages: int,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    user_agent: str = DEFAULT_USER_AGENT,
    max_depth: Optional[int] = None,
    fetch: Optional[FetchFunc] = None,
) -> CrawlResult:
    """
    Crawl all same-host links starting from base_url.

    Args:
        base_url: The URL to start crawling from. Its host bounds the crawl.
        max_concurrency: Maximum number of pages fetched at the same time.
        max_pages: Soft limit on distinct pages recorded.
        timeout_s: HTTP request timeout in seconds.
        user_agent: User-Agent header to use for requests.
        max_depth: Optional limit on link hops from base_url (0 = seed only).
        fetch: Optional replacement for the HTTP fetcher.

    Returns:
        CrawlResult with inbound link counts per canonical URL.
    """
    config = CrawlConfig(
        base_url=base_url,
        max_concurrency=max_concurrency,
        max_pages=max_pages,
        timeout_s=timeout_s,
        user_agent=user_agent,
        max_depth=max_depth,
    )
    return Crawler(config, fetch=fetch).run()
