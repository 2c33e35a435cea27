"""Unit tests for core/utils/slug.py"""

from mdblog.core.utils.slug import slugify


def test_slugify_basic():
    assert slugify("Hello World") == "hello-world"


def test_slugify_folds_swedish_letters():
    assert slugify("Åka skidor på Öland") == "aka-skidor-pa-oland"


def test_slugify_strips_punctuation_and_collapses():
    assert slugify("  C++ & Rust -- notes! ") == "c-rust-notes"


def test_slugify_empty():
    assert slugify("") == ""
