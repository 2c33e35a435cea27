"""Choosing where a post's teaser ends, and adjusting the teaser text before it is rendered"""

import re
from typing import Optional

from mdblog.core.models import PageRef, TeaserSplit, UpdateInfo


MORE_MARKER = "<!-- more -->"
HEADING_MARKER_RE = re.compile(r'\n#{1,6}[ \t]')
FRONT_IMAGE_RE = re.compile(r'!\[[^\]]*\]\[[^\]\{]*\{[^\}]*\bfront\b[^\}]*\}[^\]]*\]', re.DOTALL)
FENCE_RE = re.compile(r'^ {0,3}(`{3,}|~{3,})(.*)$', re.MULTILINE)
BREAK_RE = re.compile(r'\n(?=\n)')
ANCHOR_RE = re.compile(r'\]\(#([\w-]+)\)')
FIGURE_URL_RE = re.compile(r'''<figure[^>]*><(?:a href|img[^>]*src)=['"]([^'"]+)['"]''')

UPDATED = {
    'sv': "Uppdaterad {date}",
    'en': "Updated {date}",
}


def _title_end(markdown: str) -> int:
    end = markdown.find("\n")
    return len(markdown) if end < 0 else end


def fenced_spans(markdown: str) -> list[tuple[int, int]]:
    """(start, end) of each fenced code block; an unclosed fence runs to the end."""
    spans = []
    opening = None
    for m in FENCE_RE.finditer(markdown):
        fence = m.group(1)
        if opening is None:
            opening = (m.start(), fence)
        elif fence[0] == opening[1][0] and len(fence) >= len(opening[1]) and not m.group(2).strip():
            spans.append((opening[0], m.end()))
            opening = None
    if opening is not None:
        spans.append((opening[0], len(markdown)))
    return spans


def _outside(pos: int, spans: list[tuple[int, int]]) -> bool:
    return not any(start <= pos < end for start, end in spans)


def find_teaser_cut(markdown: str, min_length: int = 900, window: int = 700) -> Optional[TeaserSplit]:
    """Where to cut the teaser off markdown (title line included), or None for no split.

    An explicit `<!-- more -->` marker wins. Otherwise short posts are not
    split, and longer ones are cut in the first `window` characters after the
    title: at a heading, else at the last paragraph break, else at the first
    paragraph break after the window. Fenced code is never cut.
    """
    marker = markdown.find(MORE_MARKER)
    if marker >= 0:
        return TeaserSplit(marker, "marker")
    start = _title_end(markdown)
    rest = markdown[start:]
    if len(rest) < min_length:
        return None
    # a cut must leave some text after the title
    first = len(rest) - len(rest.lstrip()) + 1
    spans = fenced_spans(rest)
    for m in HEADING_MARKER_RE.finditer(rest[:window], first):
        if _outside(m.start(), spans):
            return TeaserSplit(start + m.start(), "heading")
    breaks = [m.start() for m in BREAK_RE.finditer(rest, first) if _outside(m.start(), spans)]
    in_window = [brk for brk in breaks if brk + 2 <= window]
    if in_window:
        return TeaserSplit(start + in_window[-1], "paragraph")
    later = [brk for brk in breaks if brk >= window]
    if later:
        return TeaserSplit(start + later[0], "paragraph")
    return None


def front_image(markdown: str) -> Optional[str]:
    """The first image ref carrying the `front` class, as written."""
    m = FRONT_IMAGE_RE.search(markdown)
    return m.group(0) if m else None


def splice_front_image(teaser: str, markdown: str) -> str:
    """Insert the document's front image after the teaser's first paragraph break, unless it has an image."""
    if "\n![" in teaser:
        return teaser
    img = front_image(markdown)
    if img is None:
        return teaser
    brk = teaser.find("\n\n")
    at = 0 if brk < 0 else brk + 1
    return f"{teaser[:at]}\n{img.replace('gallery', 'sidebar')}\n{teaser[at:]}"


def update_line(update: Optional[UpdateInfo], lang: str) -> str:
    if update is None or not update.note:
        return ""
    template = UPDATED.get(lang, UPDATED['en'])
    return f"\n\n**{template.format(date=update.date.date().isoformat())}** {update.note}"


def qualify_anchors(teaser: str, page: PageRef) -> str:
    """Point same-document anchors at the full post, as a teaser can be shown on its own."""
    return ANCHOR_RE.sub(lambda m: f"]({page.url()}#{m.group(1)})", teaser)


def adjust_teaser(teaser: str, markdown: str, page: PageRef, update: Optional[UpdateInfo] = None) -> str:
    teaser = splice_front_image(teaser, markdown)
    teaser += update_line(update, page.lang)
    return qualify_anchors(teaser, page)


def find_front_image_url(html: str) -> Optional[str]:
    """Url of the first figure's link or image in rendered html."""
    m = FIGURE_URL_RE.search(html)
    return m.group(1) if m else None
