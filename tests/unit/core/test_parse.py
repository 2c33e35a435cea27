"""Unit tests for core/parse.py"""

from datetime import datetime

import pytest

from mdblog.core.errors import MetadataError
from mdblog.core.models import AssetSpec
from mdblog.core.parse import (
    discover_files,
    extract_metadata,
    get_assets,
    get_pubdate,
    get_tags,
    get_update,
    load_file,
    split_name,
)


# --- extract_metadata ---

def test_extract_metadata_splits_leading_lines():
    """Key/value lines before the blank line become metadata; the rest is the body."""
    meta, body = extract_metadata("pubdate: 2023-01-02\ntags: a, b\n\n# Title\n\nText\n")
    assert meta == {"pubdate": "2023-01-02", "tags": "a, b"}
    assert body == "# Title\n\nText"


def test_extract_metadata_splits_on_first_colon():
    meta, _ = extract_metadata("update: 2023-01-02T10:30:00 Fixed a typo\n\n# T")
    assert meta["update"] == "2023-01-02T10:30:00 Fixed a typo"


def test_extract_metadata_last_duplicate_wins():
    """A repeated key keeps the value of its last occurrence."""
    meta, _ = extract_metadata("tags: first\ntags: second\n\n# T")
    assert meta == {"tags": "second"}


def test_extract_metadata_stops_at_line_without_colon():
    meta, body = extract_metadata("key: value\nno colon here\nother: x\n")
    assert meta == {"key": "value"}
    assert body == "no colon here\nother: x"


def test_extract_metadata_does_not_consume_title_with_colon():
    """A heading line is never read as metadata."""
    meta, body = extract_metadata("# Rust: a story\n\nText")
    assert meta == {}
    assert body.startswith("# Rust: a story")


def test_extract_metadata_without_metadata():
    meta, body = extract_metadata("\n\n# Title\n")
    assert meta == {}
    assert body == "# Title"


# --- typed accessors ---

def test_get_pubdate_parses_iso_dates():
    assert get_pubdate({"pubdate": "2019-05-17T20:35:00"}) == datetime(2019, 5, 17, 20, 35)
    assert get_pubdate({}) is None


def test_get_pubdate_malformed_raises():
    with pytest.raises(MetadataError, match="pubdate"):
        get_pubdate({"pubdate": "last tuesday"})


def test_get_update_with_and_without_note():
    info = get_update({"update": "2020-02-03 Added a map"})
    assert info.date == datetime(2020, 2, 3)
    assert info.note == "Added a map"
    assert get_update({"update": "2020-02-03"}).note == ""
    assert get_update({}) is None


def test_get_assets_parses_specs():
    specs = get_assets({"res": "map.js {application/javascript}, photo.jpg {image/jpeg}"})
    assert specs == [AssetSpec("map.js", "application/javascript"), AssetSpec("photo.jpg", "image/jpeg")]


def test_get_assets_malformed_raises():
    with pytest.raises(MetadataError, match="asset spec"):
        get_assets({"res": "photo.jpg"})


def test_get_tags_strips_and_drops_empty():
    assert get_tags({"tags": " travel, , photo "}) == ["travel", "photo"]
    assert get_tags({}) == []


# --- files ---

def test_split_name_reads_slug_and_language(tmp_path):
    assert split_name(tmp_path / "a-trip.sv.md") == ("a-trip", "sv")
    assert split_name(tmp_path / "a-trip.md", default_lang="en") == ("a-trip", "en")


def test_discover_files_skips_dotfiles_and_other_suffixes(tmp_path):
    (tmp_path / "a.en.md").write_text("# A")
    (tmp_path / "notes.txt").write_text("x")
    (tmp_path / ".hidden.en.md").write_text("# H")
    (tmp_path / ".drafts").mkdir()
    (tmp_path / ".drafts" / "b.en.md").write_text("# B")
    (tmp_path / "2023").mkdir()
    (tmp_path / "2023" / "c.sv.md").write_text("# C")
    found = discover_files(tmp_path)
    assert [p.relative_to(tmp_path).as_posix() for p in found] == ["2023/c.sv.md", "a.en.md"]


def test_discover_files_single_file(sample_file):
    assert discover_files(sample_file) == [sample_file]


def test_load_file(sample_file):
    doc = load_file(sample_file)
    assert (doc.slug, doc.lang) == ("a-trip", "en")
    assert doc.metadata["tags"] == "travel, photo"
    assert doc.body.startswith("# A trip")
    assert doc.raw.startswith("pubdate:")
