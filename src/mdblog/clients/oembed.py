"""Video embed metadata from an oEmbed endpoint, and thumbnail download"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

import httpx

from mdblog.core.errors import NetworkError


logger = logging.getLogger(__name__)

SHORT_VIDEO_RE = re.compile(r'^https?://youtu\.be/(?P<id>[\w-]{6,})(?:\?.*)?$')
HIRES_THUMBNAIL = "https://i.ytimg.com/vi/{id}/maxresdefault.jpg"


@dataclass(frozen=True)
class VideoInfo:
    video_id: str
    url: str
    title: str
    html: str
    thumbnail_url: str
    width: int
    height: int


@dataclass(frozen=True)
class Thumbnail:
    content: bytes
    mime: str


def video_id(url: str) -> Optional[str]:
    """The id of a short video-sharing url like `https://youtu.be/<id>`, else None."""
    m = SHORT_VIDEO_RE.match(url.strip())
    return m.group('id') if m else None


class OEmbedClient:

    def __init__(self, endpoint: str = "https://www.youtube.com/oembed", client: httpx.Client = None):
        self.endpoint = endpoint
        self.http = client or httpx.Client(follow_redirects=True)

    def fetch(self, url: str) -> VideoInfo:
        """oEmbed metadata for a short video url. Caller checks the url with video_id() first."""
        vid = video_id(url)
        try:
            response = self.http.get(self.endpoint, params={"url": url, "format": "json"})
            response.raise_for_status()
            data = response.json()
            return VideoInfo(
                video_id=vid or "",
                url=url,
                title=data.get("title", ""),
                html=data["html"],
                thumbnail_url=data["thumbnail_url"],
                width=int(data.get("width") or data.get("thumbnail_width") or 0),
                height=int(data.get("height") or data.get("thumbnail_height") or 0),
            )
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise NetworkError(url, e) from e

    def thumbnail(self, info: VideoInfo) -> Thumbnail:
        """Download the high resolution thumbnail, falling back to the oEmbed one."""
        hires = HIRES_THUMBNAIL.format(id=info.video_id)
        try:
            response = self.http.get(hires)
            if response.is_success:
                return Thumbnail(response.content, _mime(response))
            logger.debug("No high resolution thumbnail for %s (%s)", info.video_id, response.status_code)
        except httpx.HTTPError as e:
            logger.debug("High resolution thumbnail for %s failed: %s", info.video_id, e)
        try:
            response = self.http.get(info.thumbnail_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NetworkError(info.thumbnail_url, e) from e
        return Thumbnail(response.content, _mime(response))


def _mime(response: httpx.Response) -> str:
    return response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
