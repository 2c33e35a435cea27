"""Unit tests for crud/metapages.py"""

from sqlmodel import select

from mdblog.crud.metapages import commit_metapage, get_metapage, is_metapage_unchanged
from mdblog.crud.models import MetaPage, Post


def test_commit_creates_metapage(session, output):
    """Only title and body of the render output are stored."""
    page, status = commit_metapage(session, "about", "en", "meta: about\n\n# Hello", output)
    assert status == "created"
    assert page.id is not None
    assert (page.title, page.content) == ("Hello", "<p>World</p>\n")
    assert session.exec(select(Post)).all() == []


def test_same_markdown_is_unchanged(session, output):
    commit_metapage(session, "about", "en", "# Hello", output)
    assert is_metapage_unchanged(session, "about", "en", "# Hello")
    assert not is_metapage_unchanged(session, "about", "en", "# Hello!")
    assert not is_metapage_unchanged(session, "about", "sv", "# Hello")
    page, status = commit_metapage(session, "about", "en", "# Hello", output.model_copy(update={"title": "X"}))
    assert status == "unchanged"
    assert page.title == "Hello"


def test_force_and_changed_markdown_update(session, output):
    commit_metapage(session, "about", "en", "# Hello", output)
    _, status = commit_metapage(session, "about", "en", "# Hello", output.model_copy(update={"title": "A"}), force=True)
    assert status == "updated"
    page, status = commit_metapage(session, "about", "en", "# Hi", output.model_copy(update={"title": "B"}))
    assert status == "updated"
    assert (page.title, page.orig_md) == ("B", "# Hi")
    assert len(session.exec(select(MetaPage)).all()) == 1


def test_languages_are_separate_pages(session, output):
    commit_metapage(session, "about", "en", "# Hello", output)
    commit_metapage(session, "about", "sv", "# Hej", output.model_copy(update={"title": "Hej"}))
    assert get_metapage(session, "about", "sv").title == "Hej"
    assert get_metapage(session, "about", "en").title == "Hello"
    assert get_metapage(session, "about", "de") is None
