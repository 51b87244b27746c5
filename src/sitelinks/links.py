"""
Anchor link extraction from HTML pages.
"""
from __future__ import annotations

from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup, SoupStrainer

from sitelinks.urls import normalize_url

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


def extract_links(html: str, base_url: str) -> List[str]:
    """
    Return every <a href> in document order, resolved against base_url.

    Duplicates are kept. Hrefs that cannot be resolved are skipped.
    Raises ValueError if base_url itself cannot be parsed.
    """
    if normalize_url(base_url) is None:
        raise ValueError(f"Invalid base URL: {base_url}")

    soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)

    urls: List[str] = []
    for anchor in soup.find_all("a", href=True):
        try:
            urls.append(urljoin(base_url, anchor["href"].strip()))
        except ValueError:
            continue
    return urls
