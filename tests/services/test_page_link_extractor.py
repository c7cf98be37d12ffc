from unittest.mock import Mock

import pytest

from mixarchive.domain.http_response import HttpResponse
from mixarchive.exceptions import PageLoadFailure
from mixarchive.services.page_link_extractor import PageLinkExtractor

LISTING = """
<html><body>
  <div class="cover"><a class="mix_url" href="/dj/late-night">Late Night</a></div>
  <div class="cover"><a class="mix_url" href="https://8tracks.com/dj/early-morning">Early</a></div>
  <div class="cover"><a class="mix_url" href="/dj/late-night">dup</a></div>
  <div class="cover"><a class="mix_url">no href</a></div>
  <a class="mix_url" href="/dj/outside-cover">not a cover</a>
</body></html>
"""


def _extractor(status=200, text=LISTING):
    http_service = Mock(fetch=Mock(return_value=HttpResponse(status, text, "text/html")))
    return PageLinkExtractor(http_service), http_service


@pytest.mark.asyncio
async def test_extract_returns_absolute_links_in_page_order():
    extractor, http_service = _extractor()

    links = await extractor.extract("https://8tracks.com/dj/history/1", ".cover a.mix_url")

    assert links == [
        "https://8tracks.com/dj/late-night",
        "https://8tracks.com/dj/early-morning",
    ]
    http_service.fetch.assert_called_once_with("https://8tracks.com/dj/history/1")


@pytest.mark.asyncio
async def test_page_without_items_is_empty():
    extractor, _ = _extractor(text="<html><body><p>No more mixes</p></body></html>")
    assert await extractor.extract("https://8tracks.com/dj/history/9", ".cover a.mix_url") == []


@pytest.mark.asyncio
async def test_error_status_raises_page_load_failure():
    extractor, _ = _extractor(status=503, text="")
    with pytest.raises(PageLoadFailure) as exc:
        await extractor.extract("https://8tracks.com/dj/history/2", ".cover a.mix_url")
    assert "HTTP 503" in str(exc.value)


@pytest.mark.asyncio
async def test_transport_failure_propagates():
    http_service = Mock(fetch=Mock(side_effect=PageLoadFailure("u", RuntimeError("timeout"))))
    with pytest.raises(PageLoadFailure):
        await PageLinkExtractor(http_service).extract("u", "a")


def test_parse_links_empty_html():
    extractor, _ = _extractor()
    assert extractor.parse_links("https://e.com/", None, "a") == []
