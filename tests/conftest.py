import threading
import time

from sitelinks.fetcher import FetchError
from sitelinks.urls import normalize_url


class FakeSite:
    """In-memory site: canonical URL -> HTML. Records every fetch."""

    def __init__(self, pages, delay=0.0):
        self.pages = {normalize_url(url): html for url, html in pages.items()}
        self.delay = delay
        self.fetched = []
        self._lock = threading.Lock()
        self._active = 0
        self.peak = 0

    def __call__(self, url):
        with self._lock:
            self.fetched.append(url)
            self._active += 1
            self.peak = max(self.peak, self._active)
        try:
            if self.delay:
                time.sleep(self.delay)
            html = self.pages.get(normalize_url(url))
            if html is None:
                raise FetchError(url, "status code 404", 404)
            return html
        finally:
            with self._lock:
                self._active -= 1

    def fetched_canonical(self):
        return [normalize_url(url) for url in self.fetched]


def anchors(*hrefs):
    body = "".join(f'<a href="{href}">link</a>' for href in hrefs)
    return f"<html><body>{body}</body></html>"
