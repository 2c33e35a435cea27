"""Asset store: binary files published under /{year}/{name}"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from sqlmodel import Session, select

from mdblog.core.models import AssetSpec
from mdblog.crud.models import Asset


logger = logging.getLogger(__name__)


def asset_url(year: int, name: str) -> str:
    return f"/{year}/{name}"


class AssetStore(ABC):
    @abstractmethod
    def store(self, year: int, name: str, mime: str, content: bytes) -> str:
        """Create or replace an asset. Returns its public url."""
        raise NotImplementedError


@dataclass
class MemoryAssetStore(AssetStore):
    assets: dict[tuple[int, str], tuple[str, bytes]] = field(default_factory=dict)

    def store(self, year: int, name: str, mime: str, content: bytes) -> str:
        self.assets[(year, name)] = (mime, content)
        return asset_url(year, name)


class SqlAssetStore(AssetStore):
    """Stores assets in the database. Each call uses its own session so renders may run in threads."""

    def __init__(self, engine):
        self.engine = engine

    def store(self, year: int, name: str, mime: str, content: bytes) -> str:
        with Session(self.engine) as session:
            asset = session.exec(
                select(Asset).where(Asset.year == year).where(Asset.name == name)
            ).one_or_none()
            if asset is None:
                logger.info("Creating asset %s/%s (%s)", year, name, mime)
                session.add(Asset(year=year, name=name, mime=mime, content=content))
            elif asset.mime != mime or asset.content != content:
                logger.info("Updating asset #%s %s/%s", asset.id, year, name)
                asset.mime = mime
                asset.content = content
                session.add(asset)
            session.commit()
        return asset_url(year, name)


def load_assets(source: Path, specs: list[AssetSpec], year: int, store: AssetStore) -> list[tuple[str, str]]:
    """Store the files declared by `res:` (relative to the source file). Returns (name, url) pairs."""
    folder = source.parent if source else Path(".")
    files = []
    for spec in specs:
        path = folder / spec.name
        try:
            content = path.read_bytes()
        except OSError as e:
            raise ValueError(f"Asset {spec.name!r}: {e}") from e
        files.append((spec.name, store.store(year, spec.name, spec.mime, content)))
    return files
