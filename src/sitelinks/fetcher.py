"""
Blocking HTTP page fetcher built on requests.
"""
from __future__ import annotations

from typing import Optional

import requests

DEFAULT_TIMEOUT_S = 15.0
DEFAULT_USER_AGENT = "LinkCountCrawler/1.0"

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class FetchError(Exception):
    """A page could not be fetched (transport error, bad status, not HTML)."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class PageFetcher:
    """Fetches HTML bodies over a shared session. Safe to call from worker threads."""

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    def fetch(self, url: str) -> str:
        """Return the HTML body of url or raise FetchError."""
        try:
            resp = self.session.get(url, timeout=self.timeout_s, allow_redirects=True)
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e

        if not 200 <= resp.status_code < 300:
            raise FetchError(url, f"status code {resp.status_code}", resp.status_code)

        # Only parse HTML content
        content_type = (resp.headers.get("content-type") or "").lower()
        media_type = content_type.split(";", 1)[0].strip()
        if media_type and media_type not in HTML_CONTENT_TYPES:
            raise FetchError(url, f"not HTML ({media_type})", resp.status_code)

        try:
            return resp.text
        except (requests.RequestException, LookupError) as e:
            raise FetchError(url, f"failed to read body: {e}", resp.status_code) from e

    __call__ = fetch

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
