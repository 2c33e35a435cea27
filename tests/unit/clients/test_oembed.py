"""Unit tests for clients/oembed.py"""

import httpx
import pytest

from mdblog.clients.oembed import OEmbedClient, VideoInfo, video_id
from mdblog.core.errors import NetworkError


OEMBED = {
    "title": "A cat",
    "html": '<iframe width="200" height="113" src="https://www.youtube.com/embed/abc123def?feature=oembed"></iframe>',
    "thumbnail_url": "https://i.ytimg.com/vi/abc123def/hqdefault.jpg",
    "thumbnail_width": 480,
    "thumbnail_height": 360,
    "width": 200,
    "height": 113,
}


def _client(handler) -> OEmbedClient:
    return OEmbedClient(client=httpx.Client(transport=httpx.MockTransport(handler)))


@pytest.mark.parametrize("url, expected", [
    ("https://youtu.be/abc123def", "abc123def"),
    ("http://youtu.be/a-b_c1234?t=10", "a-b_c1234"),
    (" https://youtu.be/abc123def\n", "abc123def"),
    ("https://www.youtube.com/watch?v=abc123def", None),
    ("https://vimeo.com/12345", None),
    ("https://youtu.be/abc", None),
])
def test_video_id(url, expected):
    assert video_id(url) == expected


def test_fetch():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=OEMBED)

    info = _client(handler).fetch("https://youtu.be/abc123def")
    assert info == VideoInfo(
        video_id="abc123def",
        url="https://youtu.be/abc123def",
        title="A cat",
        html=OEMBED["html"],
        thumbnail_url=OEMBED["thumbnail_url"],
        width=200,
        height=113,
    )
    assert seen[0].url.params["url"] == "https://youtu.be/abc123def"
    assert seen[0].url.params["format"] == "json"


def test_fetch_http_error():
    with pytest.raises(NetworkError) as exc:
        _client(lambda r: httpx.Response(404)).fetch("https://youtu.be/abc123def")
    assert exc.value.ref == "https://youtu.be/abc123def"


def test_fetch_missing_fields():
    with pytest.raises(NetworkError):
        _client(lambda r: httpx.Response(200, json={"title": "x"})).fetch("https://youtu.be/abc123def")


INFO = VideoInfo("abc123def", "https://youtu.be/abc123def", "A cat", "", OEMBED["thumbnail_url"], 200, 113)


def test_thumbnail_prefers_high_resolution():
    def handler(request):
        if "maxresdefault" in request.url.path:
            return httpx.Response(200, content=b"hires", headers={"content-type": "image/jpeg"})
        return httpx.Response(200, content=b"lores", headers={"content-type": "image/jpeg"})

    thumb = _client(handler).thumbnail(INFO)
    assert (thumb.content, thumb.mime) == (b"hires", "image/jpeg")


def test_thumbnail_falls_back():
    """A missing high resolution thumbnail falls back to the oEmbed thumbnail."""
    def handler(request):
        if "maxresdefault" in request.url.path:
            return httpx.Response(404)
        return httpx.Response(200, content=b"lores", headers={"content-type": "image/webp; q=1"})

    thumb = _client(handler).thumbnail(INFO)
    assert (thumb.content, thumb.mime) == (b"lores", "image/webp")


def test_thumbnail_failure():
    with pytest.raises(NetworkError, match="hqdefault"):
        _client(lambda r: httpx.Response(500)).thumbnail(INFO)
