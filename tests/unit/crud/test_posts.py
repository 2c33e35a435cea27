"""Unit tests for crud/posts.py"""

from datetime import datetime

from sqlmodel import select

from mdblog.crud.models import Post, PostTag, Tag
from mdblog.crud.posts import (
    DRAFT_MARK, commit_post, delete_stale_drafts, get_post, is_unchanged, tag_post,
)


POSTED = datetime(2023, 4, 1, 12, 0)


def _tag_names(session, post):
    session.refresh(post)
    return sorted(t.name for t in post.tags)


# --- commit_post ---

def test_commit_creates_post(session, output):
    """A new key creates a post with the render output and dates."""
    post, status = commit_post(session, 2023, "hello", "en", "# Hello", output, posted_at=POSTED)
    assert status == "created"
    assert post.id is not None
    assert (post.title, post.content, post.teaser, post.description) == \
        ("Hello", "<p>World</p>\n", "<p>World</p>\n", "World")
    assert post.posted_at == POSTED
    assert post.updated_at == POSTED
    assert post.orig_md == "# Hello"


def test_commit_same_markdown_is_unchanged(session, output):
    commit_post(session, 2023, "hello", "en", "# Hello", output)
    changed = output.model_copy(update={"title": "Other"})
    post, status = commit_post(session, 2023, "hello", "en", "# Hello", changed)
    assert status == "unchanged"
    assert post.title == "Hello"


def test_commit_force_rewrites(session, output):
    """force re-renders a post even when its markdown is the same."""
    commit_post(session, 2023, "hello", "en", "# Hello", output)
    changed = output.model_copy(update={"title": "Other", "uses_map": True})
    post, status = commit_post(session, 2023, "hello", "en", "# Hello", changed, force=True)
    assert status == "updated"
    assert post.title == "Other"
    assert post.use_leaflet is True


def test_commit_changed_markdown_updates(session, output):
    commit_post(session, 2023, "hello", "en", "# Hello", output, posted_at=POSTED)
    later = datetime(2024, 1, 1)
    post, status = commit_post(
        session, 2023, "hello", "en", "# Hello!", output.model_copy(update={"front_image": "/x.jpg"}),
        updated_at=later,
    )
    assert status == "updated"
    assert post.orig_md == "# Hello!"
    assert post.front_image == "/x.jpg"
    assert post.posted_at == POSTED
    assert post.updated_at == later
    assert len(session.exec(select(Post)).all()) == 1


def test_languages_are_separate_posts(session, output):
    commit_post(session, 2023, "hello", "en", "# Hello", output)
    _, status = commit_post(session, 2023, "hello", "sv", "# Hej", output)
    assert status == "created"
    assert get_post(session, 2023, "hello", "sv").orig_md == "# Hej"


def test_is_unchanged(session, output):
    assert not is_unchanged(session, 2023, "hello", "en", "# Hello")
    commit_post(session, 2023, "hello", "en", "# Hello", output)
    assert is_unchanged(session, 2023, "hello", "en", "# Hello")
    assert not is_unchanged(session, 2023, "hello", "en", "# Hello!")


# --- tags ---

def test_commit_with_tags(session, output):
    post, _ = commit_post(session, 2023, "hello", "en", "# Hello", output, tags=["Travel", "Photo"])
    assert _tag_names(session, post) == ["Photo", "Travel"]


def test_tags_are_replaced(session, output):
    post, _ = commit_post(session, 2023, "hello", "en", "# Hello", output, tags=["a", "b"])
    commit_post(session, 2023, "hello", "en", "# Hello!", output, tags=["b", "c"])
    assert _tag_names(session, post) == ["b", "c"]


def test_tags_none_keeps_existing(session, output):
    post, _ = commit_post(session, 2023, "hello", "en", "# Hello", output, tags=["a"])
    commit_post(session, 2023, "hello", "en", "# Hello!", output)
    assert _tag_names(session, post) == ["a"]


def test_tags_match_by_slug(session, output):
    """Tags differing only in case or diacritics are the same tag."""
    post, _ = commit_post(session, 2023, "one", "en", "1", output, tags=["Göteborg", "goteborg"])
    other, _ = commit_post(session, 2023, "two", "en", "2", output, tags=["GÖTEBORG"])
    assert len(session.exec(select(Tag)).all()) == 1
    assert _tag_names(session, post) == _tag_names(session, other) == ["Göteborg"]


def test_tag_post_empty_list_clears(session, output):
    post, _ = commit_post(session, 2023, "hello", "en", "# Hello", output, tags=["a"])
    tag_post(session, post, [])
    assert session.exec(select(PostTag)).all() == []


# --- stale drafts ---

def test_delete_stale_drafts(session, output):
    """A draft stored under another year is removed once the post changes."""
    draft = output.model_copy(update={"title": "Hello" + DRAFT_MARK})
    commit_post(session, 2022, "hello", "en", "# Hello draft", draft, tags=["a"])
    assert delete_stale_drafts(session, "hello", "# Hello") == 1
    assert get_post(session, 2022, "hello", "en") is None
    assert session.exec(select(PostTag)).all() == []


def test_delete_stale_drafts_keeps_matching_and_published(session, output):
    draft = output.model_copy(update={"title": "Hello" + DRAFT_MARK})
    commit_post(session, 2022, "hello", "en", "# Hello", draft)
    commit_post(session, 2021, "hello", "en", "# Old", output)
    assert delete_stale_drafts(session, "hello", "# Hello") == 0
    assert len(session.exec(select(Post)).all()) == 2
