"""Collaborators available to a single document render"""

from dataclasses import dataclass
from typing import Optional

from mdblog.clients.images import ImageSession
from mdblog.clients.oembed import OEmbedClient
from mdblog.core.errors import RenderError
from mdblog.core.models import PageRef
from mdblog.crud.assets import AssetStore


@dataclass
class RenderContext:
    page: PageRef
    images: Optional[ImageSession] = None
    assets: Optional[AssetStore] = None
    embeds: Optional[OEmbedClient] = None
    publish_images: bool = False

    def require_images(self) -> ImageSession:
        if self.images is None:
            raise RenderError("An image is referenced but no image service is configured")
        return self.images

    def require_assets(self) -> AssetStore:
        if self.assets is None:
            raise RenderError("An asset must be stored but no asset store is configured")
        return self.assets

    def require_embeds(self) -> OEmbedClient:
        if self.embeds is None:
            raise RenderError("A video is embedded but no oembed client is configured")
        return self.embeds
