"""Serialize the event stream into the blog's html

Headings open nested `<section>` elements, images become `<figure>`s
(optionally wrapped in a gallery), and code blocks go to the directive
handlers. Any event the renderer does not know aborts the render.
"""

import enum
import logging
from typing import Iterable, Iterator

from markdown_it.common.utils import escapeHtml

from mdblog.core import events as ev
from mdblog.core.errors import AuthoringError
from mdblog.core.links import FaRef
from mdblog.core.models import ImageRef
from mdblog.core.render.context import RenderContext
from mdblog.core.render.directives import Directive, escape_attr, parse_image_dest, render_code_block


logger = logging.getLogger(__name__)

NO_P = "<p><!--no-p-->"
GALLERY_OPEN = "<div class='gallery'>"
GALLERY_CLOSE = "</div>\n"

TAG_NAMES = {
    ev.Paragraph:     "p",
    ev.Emphasis:      "em",
    ev.Strong:        "strong",
    ev.Strikethrough: "del",
    ev.Link:          "a",
    ev.Table:         "table",
    ev.TableRow:      "tr",
    ev.Item:          "li",
    ev.BlockQuote:    "blockquote",
}
NEWLINE_AFTER = (ev.Paragraph, ev.Table, ev.Item, ev.List)


class GalleryState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"


def image_markup(img: ImageRef, alt: str, large: bool = False) -> str:
    """Image tag linking the small variant to the medium one, or the medium variant alone when large."""
    alt = escape_attr(alt)
    if large:
        return (f"<img src='{img.medium.url}' alt='{alt}' "
                f"width='{img.medium.width}' height='{img.medium.height}'>")
    return (f"<a href='{img.medium.url}'><img src='{img.small.url}' alt='{alt}' "
            f"width='{img.small.width}' height='{img.small.height}'></a>")


class HtmlRenderer:
    """Renders one event stream. Instances are single use."""

    def __init__(self, ctx: RenderContext):
        self.ctx = ctx
        self.out: list[str] = []
        self.sections: list[int] = []   # heading levels of the open sections
        self.gallery = GalleryState.CLOSED

    # --- output buffer helpers ---

    def _text(self) -> str:
        return "".join(self.out)

    def _remove_end(self, tail: str) -> bool:
        current = self._text()
        if current.endswith(tail):
            self.out = [current[:-len(tail)]] if len(tail) < len(current) else []
            return True
        return False

    def _strip_marker(self) -> str:
        """Remove and return a trailing paragraph opener or suppression marker."""
        for tail in (NO_P + "\n", NO_P, "<p>"):
            if self._remove_end(tail):
                return tail
        return ""

    # --- sections ---

    @property
    def depth(self) -> int:
        """Heading level of the innermost open section, 1 when none is open."""
        return self.sections[-1] if self.sections else 1

    def _open_heading(self, tag: ev.Heading) -> None:
        while self.sections and self.sections[-1] >= tag.level:
            self.out.append("</section>")
            self.sections.pop()
        self.out.append("\n")
        while self.depth + 1 < tag.level:
            self.out.append("<section>")
            self.sections.append(self.depth + 1)
        attrs = ""
        if tag.id:
            attrs += f' id="{escapeHtml(tag.id)}"'
        if tag.classes:
            attrs += f' class="{escapeHtml(" ".join(tag.classes))}"'
        self.out.append(f"<section{attrs}>")
        self.sections.append(tag.level)
        self.out.append(f"<h{tag.level}>")

    def _close_heading(self, tag: ev.Heading) -> None:
        if not self._remove_end(f"<h{tag.level}>"):
            self.out.append(f"</h{tag.level}>\n")

    def _close_sections(self) -> None:
        while self.sections:
            self.out.append("</section>")
            self.sections.pop()

    # --- gallery ---

    def _open_gallery(self) -> None:
        if self.gallery is GalleryState.CLOSED:
            self.out.append(GALLERY_OPEN)
            self.gallery = GalleryState.OPEN

    def _close_gallery(self) -> None:
        if self.gallery is GalleryState.OPEN:
            tail = self._strip_marker()
            self.out.append(GALLERY_CLOSE)
            self.out.append(tail)
            self.gallery = GalleryState.CLOSED

    # --- images ---

    def _image_inner(self, events: Iterator[ev.Event]) -> str:
        inner = []
        for event in events:
            if isinstance(event, ev.End) and isinstance(event.tag, ev.Image):
                break
            if isinstance(event, ev.Text):
                inner.append(event.text)
            elif isinstance(event, (ev.SoftBreak, ev.HardBreak)):
                inner.append(" ")
            elif isinstance(event, ev.Code):
                inner.append(event.literal)
        return "".join(inner)

    def _cover(self, directive: Directive, inner: str, title: str) -> str:
        ref = FaRef.parse(inner)
        if ref is None:
            raise AuthoringError(f"Cover image needs a magazine issue, got {inner!r}")
        url = ref.cover()
        text = escape_attr(inner)
        return (
            f"<figure class='fa-cover {' '.join(directive.classes)}'>"
            f"<a href='{url}'><img alt='Omslagsbild {text}' src='{url}' width='150'/></a>"
            f"<figcaption>{text} {escapeHtml(directive.caption)} {escapeHtml(title)}</figcaption></figure>\n"
        )

    def _figure(self, directive: Directive, inner: str, title: str) -> str:
        images = self.ctx.require_images()
        img = images.fetch(directive.path)
        if not img.public:
            if self.ctx.publish_images:
                logger.info("Making image %s public", directive.path)
                img = images.make_public(directive.path)
            else:
                logger.warning("Image %s is not public", directive.path)
        imgtag = image_markup(img, inner.strip(), large=directive.has("scaled"))
        portrait = " portrait" if img.is_portrait else ""
        return (
            f"<figure class='{' '.join(directive.classes)}{portrait}'{directive.attrs_html()}>{imgtag}"
            f"<figcaption>{escapeHtml(directive.caption)} {escapeHtml(title)}</figcaption></figure>\n"
        )

    def _image(self, tag: ev.Image, events: Iterator[ev.Event]) -> None:
        self._strip_marker()
        inner = self._image_inner(events)
        directive = parse_image_dest(tag.dest)
        if directive.kind == "gallery":
            self._open_gallery()
        else:
            self._close_gallery()
        if directive.kind == "cover":
            self.out.append(self._cover(directive, inner, tag.title))
        else:
            self.out.append(self._figure(directive, inner, tag.title))
        self.out.append(NO_P)

    # --- other tags ---

    def _start(self, tag) -> None:
        if isinstance(tag, ev.TableHead):
            self.out.append("<thead><tr>")
        elif isinstance(tag, ev.TableCell):
            self.out.append("<th>" if tag.header else "<td>")
        elif isinstance(tag, ev.List):
            self.out.append(f"<ol start='{tag.start}'>" if tag.ordered else "<ul>")
        elif isinstance(tag, ev.Link):
            attrs = f' href="{escapeHtml(tag.dest)}"' if tag.dest else ""
            if tag.title:
                attrs += f' title="{escapeHtml(tag.title)}"'
            self.out.append(f"<a{attrs}>")
        elif type(tag) in TAG_NAMES:
            self.out.append(f"<{TAG_NAMES[type(tag)]}>")
        else:
            self.out.append(f"<!-- {_tag_label(tag)} -->")

    def _end(self, tag) -> None:
        if isinstance(tag, ev.TableHead):
            self.out.append("</tr></thead>\n")
            return
        if isinstance(tag, ev.TableCell):
            self.out.append("</th>" if tag.header else "</td>")
        elif isinstance(tag, ev.List):
            self.out.append("</ol>" if tag.ordered else "</ul>")
        elif type(tag) in TAG_NAMES:
            self.out.append(f"</{TAG_NAMES[type(tag)]}>")
        else:
            self.out.append(f"<!-- /{_tag_label(tag)} -->")
        if isinstance(tag, NEWLINE_AFTER):
            self.out.append("\n")

    def _code_block(self, tag: ev.CodeBlock, events: Iterator[ev.Event]) -> None:
        text = []
        for event in events:
            if isinstance(event, ev.End) and isinstance(event.tag, ev.CodeBlock):
                break
            if not isinstance(event, ev.Text):
                raise AuthoringError(f"Unexpected in code: {event!r}")
            text.append(event.text)
        self.out.append(render_code_block(tag.info, "".join(text), self.ctx))

    # --- driver ---

    def _keeps_gallery(self, event: ev.Event) -> bool:
        """Events that may sit between images of one gallery run."""
        if isinstance(event, ev.SoftBreak):
            return True
        if isinstance(event, ev.Text):
            return not event.text.strip()
        if not isinstance(event, (ev.Start, ev.End)):
            return False
        if isinstance(event.tag, ev.Image):
            # a non-gallery image closes the run itself, after taking its paragraph opener
            return True
        if isinstance(event.tag, ev.Paragraph):
            return isinstance(event, ev.Start) or self._text().endswith(NO_P)
        return False

    def render(self, events: Iterable[ev.Event]) -> str:
        stream = iter(events)
        for event in stream:
            if self.gallery is GalleryState.OPEN and not self._keeps_gallery(event):
                self._close_gallery()

            if isinstance(event, ev.Text):
                self.out.append(escapeHtml(event.text))
            elif isinstance(event, ev.Start):
                tag = event.tag
                if isinstance(tag, ev.Heading):
                    self._open_heading(tag)
                elif isinstance(tag, ev.CodeBlock):
                    self._code_block(tag, stream)
                elif isinstance(tag, ev.Image):
                    self._image(tag, stream)
                else:
                    self._start(tag)
            elif isinstance(event, ev.End):
                tag = event.tag
                if isinstance(tag, ev.Heading):
                    self._close_heading(tag)
                elif isinstance(tag, ev.Paragraph) and self._text().endswith(NO_P):
                    self._remove_end(NO_P)
                elif isinstance(tag, (ev.CodeBlock, ev.Image)):
                    raise AuthoringError(f"Unbalanced {event!r}")
                else:
                    self._end(tag)
            elif isinstance(event, ev.TaskListMarker):
                self.out.append("<input disabled type='checkbox'")
                if event.done:
                    self.out.append(" checked=''")
                self.out.append("/>\n")
            elif isinstance(event, ev.SoftBreak):
                self.out.append("\n")
            elif isinstance(event, ev.HardBreak):
                self.out.append("<br/>\n")
            elif isinstance(event, ev.Code):
                self.out.append(f"<code>{escapeHtml(event.literal)}</code>")
            elif isinstance(event, ev.Html):
                self.out.append(event.raw)
            elif isinstance(event, ev.InlineHtml):
                logger.warning("Raw inline html in %s: %r", self.ctx.page.url(), event.raw)
                self.out.append(event.raw)
            elif isinstance(event, ev.Rule):
                self.out.append("<hr/>\n")
            else:
                raise AuthoringError(f"Unhandled: {event!r}", self.ctx.page.url())
        self._close_gallery()
        self._close_sections()
        return self._text()


def _tag_label(tag) -> str:
    return tag.name if isinstance(tag, ev.OtherTag) else type(tag).__name__


def render_html(events: Iterable[ev.Event], ctx: RenderContext) -> str:
    """Render an event stream to html for the page in ctx."""
    return HtmlRenderer(ctx).render(events)
