"""Root test configuration: runtime artifact cleanup and shared render collaborators"""

from pathlib import Path

import pytest

from mdblog.core.models import ImageLink, ImageRef, PageRef
from mdblog.core.render.context import RenderContext
from mdblog.crud.assets import MemoryAssetStore


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["mdblog.db", "test.db"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()


class FakeImageSession:
    """Stands in for the image service session.

    Paths containing "portrait" are taller than wide, paths containing
    "private" are not public until made public.
    """

    def __init__(self):
        self.fetched: list[str] = []
        self.published: list[str] = []

    def _ref(self, path: str, public: bool) -> ImageRef:
        width, height = (600, 800) if "portrait" in path else (800, 600)
        return ImageRef(
            small=ImageLink(url=f"https://img.test/s/{path}", width=width // 4, height=height // 4),
            medium=ImageLink(url=f"https://img.test/m/{path}", width=width, height=height),
            public=public,
        )

    def fetch(self, path: str) -> ImageRef:
        self.fetched.append(path)
        return self._ref(path, "private" not in path or path in self.published)

    def make_public(self, path: str) -> ImageRef:
        self.published.append(path)
        return self._ref(path, True)


@pytest.fixture(name="images")
def images_fixture():
    return FakeImageSession()


@pytest.fixture(name="assets")
def assets_fixture():
    return MemoryAssetStore()


@pytest.fixture(name="page")
def page_fixture():
    return PageRef(year=2023, slug="test-post", lang="en")


@pytest.fixture(name="ctx")
def ctx_fixture(page, images, assets):
    """Render context with a fake image service and an in-memory asset store."""
    return RenderContext(page=page, images=images, assets=assets)
