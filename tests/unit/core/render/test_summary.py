"""Unit tests for core/render/summary.py"""

import pytest

from mdblog.core import events as ev
from mdblog.core.errors import AuthoringError
from mdblog.core.markdown import parse_events
from mdblog.core.render.summary import summarize


def _summary(src: str) -> str:
    return summarize(parse_events(src))


def test_headings_paragraphs_and_items():
    assert _summary("## Intro\n\nSome *text* & more.\n\n- one\n- two\n") == \
        "Intro: Some text &amp; more. * one * two"


def test_images_are_skipped():
    assert _summary("Look ![a cat][cat.jpg {left} Caption] here") == "Look here"


def test_code_is_inlined_and_escaped():
    assert _summary("Use `a<b`:\n\n```\n<x>\n```\n") == "Use a&lt;b: &lt;x&gt;"


def test_task_markers():
    assert _summary("- [x] done\n- [ ] todo\n") == "* ☑ done * ☐ todo"


def test_rule_and_breaks():
    assert _summary("a\nb  \nc\n\n---\n\nd") == "a b c -- d"


def test_table_cells_are_spaced():
    assert _summary("| a | b |\n|---|---|\n| 1 | 2 |\n") == "a b 1 2"


def test_html_becomes_space():
    assert _summary("one<br>two\n\n<div>x</div>\n\nthree") == "one two three"


def test_whitespace_collapses():
    assert _summary("  lots \n\n\n   of     space  ") == "lots of space"


def test_unhandled_event():
    with pytest.raises(AuthoringError):
        summarize([ev.Unsupported("footnote_ref")])
