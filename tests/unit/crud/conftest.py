"""Shared fixtures for crud unit tests"""

import pytest
from sqlmodel import Session

from mdblog.core.models import RenderOutput
from mdblog.crud.database import init_db, make_engine


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="output")
def output_fixture():
    """A minimal render result."""
    return RenderOutput(
        title="Hello",
        body_html="<p>World</p>\n",
        teaser_html="<p>World</p>\n",
        description="World",
    )
