"""markdown-it parser setup and tokenization into the event stream"""

import re
from typing import Iterable, Optional

from markdown_it import MarkdownIt
from mdit_py_plugins.tasklists import tasklists_plugin

from mdblog.core.errors import AuthoringError
from mdblog.core.events import End, Event, Heading, Start, iter_events
from mdblog.core.links import LinkResolver, broken_links_plugin


HEADING_ATTRS_RE = re.compile(r'\s*\{\s*((?:[#.][\w-]+\s*)+)\}\s*$')


def heading_attrs_plugin(md: MarkdownIt) -> None:
    """Support trailing `{#id .class}` on headings, setting id/class attrs on heading_open."""

    def heading_attrs(state) -> None:
        tokens = state.tokens
        for i, token in enumerate(tokens[:-1]):
            if token.type != 'heading_open':
                continue
            inline = tokens[i + 1]
            m = HEADING_ATTRS_RE.search(inline.content)
            if not m or not inline.children or inline.children[-1].type != 'text':
                continue
            last = inline.children[-1]
            tail = HEADING_ATTRS_RE.search(last.content)
            if not tail:
                continue
            last.content = last.content[:tail.start()]
            inline.content = inline.content[:m.start()]
            classes = []
            for part in m.group(1).split():
                if part.startswith('#'):
                    token.attrSet('id', part[1:])
                else:
                    classes.append(part[1:])
            if classes:
                token.attrSet('class', ' '.join(classes))

    md.core.ruler.after('inline', 'heading_attrs', heading_attrs)


def make_parser(resolver: Optional[LinkResolver] = None, preset: str = 'gfm-like') -> MarkdownIt:
    """Build a MarkdownIt instance with tables, strikethrough, task lists and link resolution."""
    md = MarkdownIt(preset, options_update={"linkify": False})
    md.use(tasklists_plugin)
    md.use(heading_attrs_plugin)
    md.use(broken_links_plugin, resolver or LinkResolver())
    return md


def parse_events(markdown: str, resolver: Optional[LinkResolver] = None) -> list[Event]:
    """Parse markdown into a fully materialized event list."""
    tokens = make_parser(resolver).parse(markdown, {})
    return list(iter_events(tokens))


def split_title(events: Iterable[Event]) -> tuple[list[Event], list[Event]]:
    """Split off the leading level-1 heading. Returns (title events, remaining events).

    Raises AuthoringError when the stream does not start with a level-1 heading.
    """
    events = list(events)
    if not events or not (isinstance(events[0], Start) and isinstance(events[0].tag, Heading)
                          and events[0].tag.level == 1):
        raise AuthoringError(f"Expected h1, got {events[0] if events else 'nothing'}")
    for i, event in enumerate(events[1:], start=1):
        if isinstance(event, End) and isinstance(event.tag, Heading):
            return events[1:i], events[i + 1:]
    raise AuthoringError("No end of h1")
