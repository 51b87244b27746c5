"""
Concurrent same-host crawler that counts internal links pointing at each page.
Prints a report of pages ranked by inbound link count.
"""
from sitelinks.core import crawl, Crawler, CrawlConfig, CrawlResult, CrawlStats
from sitelinks.fetcher import FetchError, PageFetcher
from sitelinks.links import extract_links
from sitelinks.urls import is_same_origin, normalize_url

__version__ = "1.0.0"
__all__ = [
    "crawl",
    "Crawler",
    "CrawlConfig",
    "CrawlResult",
    "CrawlStats",
    "FetchError",
    "PageFetcher",
    "extract_links",
    "is_same_origin",
    "normalize_url",
]
