import pytest
import requests

from sitelinks.fetcher import DEFAULT_USER_AGENT, FetchError, PageFetcher

URL = "https://a.test/page"


@pytest.fixture
def fetcher():
    f = PageFetcher(timeout_s=5, user_agent="TestBot/1.0")
    yield f
    f.close()


def test_fetch_returns_html_body(fetcher, requests_mock):
    requests_mock.get(URL, text="<html>ok</html>", headers={"Content-Type": "text/html; charset=utf-8"})
    assert fetcher.fetch(URL) == "<html>ok</html>"
    assert requests_mock.last_request.headers["User-Agent"] == "TestBot/1.0"


def test_fetcher_is_callable(fetcher, requests_mock):
    requests_mock.get(URL, text="<p>hi</p>")
    assert fetcher(URL) == "<p>hi</p>"


def test_default_user_agent(requests_mock):
    requests_mock.get(URL, text="")
    with PageFetcher() as f:
        f.fetch(URL)
    assert requests_mock.last_request.headers["User-Agent"] == DEFAULT_USER_AGENT


def test_any_2xx_status_is_success(fetcher, requests_mock):
    requests_mock.get(URL, text="<html></html>", status_code=203)
    assert fetcher.fetch(URL) == "<html></html>"


@pytest.mark.parametrize("status", [301, 404, 500])
def test_non_success_status_raises(fetcher, requests_mock, status):
    requests_mock.get(URL, text="nope", status_code=status)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)
    assert excinfo.value.status_code == status
    assert excinfo.value.url == URL


def test_redirects_are_followed(fetcher, requests_mock):
    requests_mock.get(URL, status_code=302, headers={"Location": "https://a.test/final"})
    requests_mock.get("https://a.test/final", text="<html>final</html>")
    assert fetcher.fetch(URL) == "<html>final</html>"


def test_transport_error_raises_without_status(fetcher, requests_mock):
    requests_mock.get(URL, exc=requests.exceptions.ConnectTimeout)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)
    assert excinfo.value.status_code is None


def test_non_html_content_type_raises(fetcher, requests_mock):
    requests_mock.get(URL, content=b"%PDF-1.4", headers={"Content-Type": "application/pdf"})
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)
    assert excinfo.value.status_code == 200
    assert "not HTML" in str(excinfo.value)


def test_xhtml_content_type_is_accepted(fetcher, requests_mock):
    requests_mock.get(URL, text="<html/>", headers={"Content-Type": "application/xhtml+xml"})
    assert fetcher.fetch(URL) == "<html/>"


@pytest.mark.parametrize("content_type", ["text/htmlx", "text/html-sandboxed", "text/plain; note=text/html"])
def test_lookalike_media_types_are_rejected(fetcher, requests_mock, content_type):
    requests_mock.get(URL, text="<html></html>", headers={"Content-Type": content_type})
    with pytest.raises(FetchError):
        fetcher.fetch(URL)


def test_media_type_match_ignores_case_and_parameters(fetcher, requests_mock):
    requests_mock.get(URL, text="<html></html>", headers={"Content-Type": " Text/HTML ; charset=ISO-8859-1"})
    assert fetcher.fetch(URL) == "<html></html>"
