"""Data models for loading, rendering and storing one post"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class ImageLink(BaseModel):
    """One size variant of an image on the image service."""
    url: str
    width: int
    height: int

    def relative(self, base: str) -> "ImageLink":
        if self.url.startswith(("http://", "https://")):
            return self
        return self.model_copy(update={"url": f"{base}{self.url}"})


class ImageRef(BaseModel):
    """Image metadata as returned by the image service."""
    small: ImageLink
    medium: ImageLink
    public: bool

    @property
    def is_portrait(self) -> bool:
        return self.medium.width < self.medium.height

    def relative(self, base: str) -> "ImageRef":
        return self.model_copy(update={
            "small": self.small.relative(base),
            "medium": self.medium.relative(base),
        })


class RenderOutput(BaseModel):
    """Everything the post store keeps from one render."""
    title: str
    body_html: str
    teaser_html: str
    description: str
    front_image: Optional[str] = None
    uses_map: bool = False


@dataclass(frozen=True)
class PageRef:
    """Identifies the published page of a post."""
    year: int
    slug: str
    lang: str

    def url(self) -> str:
        return f"/{self.year}/{self.slug}.{self.lang}"


@dataclass(frozen=True)
class UpdateInfo:
    """Parsed `update: <date> <note>` metadata."""
    date: datetime
    note: str = ""


@dataclass(frozen=True)
class AssetSpec:
    """One entry of `res: <name> {<mime>}` metadata."""
    name: str
    mime: str


@dataclass(frozen=True)
class TeaserSplit:
    """Where the teaser ends in the raw body, and which rule chose it."""
    offset: int
    reason: str


@dataclass
class MarkdownDocument:
    """A loaded source file: raw text, metadata lines and the markdown body."""
    raw:      str
    metadata: dict[str, str]
    body:     str
    path:     Optional[Path] = None
    slug:     str = ""
    lang:     str = "en"
    files:    list[tuple[str, str]] = field(default_factory=list)   # (name, url) of stored assets
