"""Plain text summary of an event stream, for feed and meta descriptions"""

import re
from typing import Iterable

from markdown_it.common.utils import escapeHtml

from mdblog.core import events as ev
from mdblog.core.errors import AuthoringError


WHITESPACE_RE = re.compile(r'\s+')

SPACED_TAGS = (ev.Paragraph, ev.TableHead, ev.TableRow, ev.TableCell)


def _skip_until_end(stream, kind) -> list[ev.Event]:
    inner = []
    for event in stream:
        if isinstance(event, ev.End) and isinstance(event.tag, kind):
            break
        inner.append(event)
    return inner


def summarize(events: Iterable[ev.Event]) -> str:
    """Flatten events to html-escaped text on one line.

    Headings end in ": ", list items start with " * ", images are dropped.
    """
    out = []
    stream = iter(events)
    for event in stream:
        if isinstance(event, ev.Text):
            out.append(escapeHtml(event.text))
        elif isinstance(event, ev.Start):
            tag = event.tag
            if isinstance(tag, ev.CodeBlock):
                for inner in _skip_until_end(stream, ev.CodeBlock):
                    if not isinstance(inner, ev.Text):
                        raise AuthoringError(f"Unexpected in code: {inner!r}")
                    out.append(escapeHtml(inner.text))
            elif isinstance(tag, ev.Image):
                _skip_until_end(stream, ev.Image)
            elif isinstance(tag, ev.Item):
                out.append(" * ")
            elif isinstance(tag, SPACED_TAGS):
                out.append(" ")
        elif isinstance(event, ev.End):
            if isinstance(event.tag, ev.Heading):
                out.append(": ")
            elif isinstance(event.tag, SPACED_TAGS + (ev.Item,)):
                out.append(" ")
        elif isinstance(event, ev.TaskListMarker):
            out.append("☑" if event.done else "☐")
        elif isinstance(event, ev.Rule):
            out.append(" -- ")
        elif isinstance(event, (ev.SoftBreak, ev.HardBreak, ev.Html, ev.InlineHtml)):
            out.append(" ")
        elif isinstance(event, ev.Code):
            out.append(escapeHtml(event.literal))
        else:
            raise AuthoringError(f"Unhandled: {event!r}")
    return WHITESPACE_RE.sub(" ", "".join(out).strip())
