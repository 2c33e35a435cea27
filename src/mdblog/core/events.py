"""Structural event stream built from markdown-it tokens

markdown-it produces a flat token list with nested `inline` children. The
renderers consume a flat stream of Start/End/leaf events instead, so each
handler sees one event at a time and unknown constructs surface as explicit
`Unsupported` events rather than being skipped.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Union


# --- tags ---

@dataclass(frozen=True)
class Heading:
    level: int
    id: Optional[str] = None
    classes: tuple[str, ...] = ()


@dataclass(frozen=True)
class CodeBlock:
    info: str = ""


@dataclass(frozen=True)
class Image:
    dest: str
    title: str = ""


@dataclass(frozen=True)
class Link:
    dest: str
    title: str = ""
    id: str = ""


@dataclass(frozen=True)
class Paragraph:
    pass


@dataclass(frozen=True)
class List:
    start: Optional[int] = None     # None for bullet lists

    @property
    def ordered(self) -> bool:
        return self.start is not None


@dataclass(frozen=True)
class Item:
    pass


@dataclass(frozen=True)
class Table:
    pass


@dataclass(frozen=True)
class TableHead:
    pass


@dataclass(frozen=True)
class TableRow:
    pass


@dataclass(frozen=True)
class TableCell:
    header: bool = False


@dataclass(frozen=True)
class BlockQuote:
    pass


@dataclass(frozen=True)
class Emphasis:
    pass


@dataclass(frozen=True)
class Strong:
    pass


@dataclass(frozen=True)
class Strikethrough:
    pass


@dataclass(frozen=True)
class OtherTag:
    """A container token kind with no dedicated tag (e.g. from a parser plugin)."""
    name: str


Tag = Union[
    Heading, CodeBlock, Image, Link, Paragraph, List, Item, Table, TableHead,
    TableRow, TableCell, BlockQuote, Emphasis, Strong, Strikethrough, OtherTag,
]


# --- events ---

@dataclass(frozen=True)
class Start:
    tag: Tag


@dataclass(frozen=True)
class End:
    tag: Tag


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Code:
    literal: str


@dataclass(frozen=True)
class Html:
    raw: str


@dataclass(frozen=True)
class InlineHtml:
    raw: str


@dataclass(frozen=True)
class Rule:
    pass


@dataclass(frozen=True)
class SoftBreak:
    pass


@dataclass(frozen=True)
class HardBreak:
    pass


@dataclass(frozen=True)
class TaskListMarker:
    done: bool


@dataclass(frozen=True)
class Unsupported:
    """A token type the converter has no event for."""
    kind: str


Event = Union[
    Start, End, Text, Code, Html, InlineHtml, Rule, SoftBreak, HardBreak,
    TaskListMarker, Unsupported,
]


# --- token conversion ---

SIMPLE_TAGS = {
    'paragraph':   Paragraph,
    'list_item':   Item,
    'table':       Table,
    'blockquote':  BlockQuote,
    'em':          Emphasis,
    'strong':      Strong,
    's':           Strikethrough,
}

SKIPPED_CONTAINERS = {'tbody'}
TASK_CHECKBOX_CLASS = 'task-list-item-checkbox'


def _heading(token) -> Heading:
    classes = token.attrGet('class') or ''
    return Heading(
        level=int(token.tag[1:]),
        id=token.attrGet('id') or None,
        classes=tuple(classes.split()),
    )


def _open_tag(token, in_head: bool) -> Optional[Tag]:
    """Tag for an *_open token. None means the token is structural noise to drop."""
    kind = token.type[:-len('_open')]
    if kind == 'heading':
        return _heading(token)
    if kind == 'bullet_list':
        return List()
    if kind == 'ordered_list':
        return List(start=int(token.attrGet('start') or 1))
    if kind == 'link':
        return Link(dest=token.attrGet('href') or '', title=token.attrGet('title') or '')
    if kind == 'thead':
        return TableHead()
    if kind == 'tr':
        return None if in_head else TableRow()
    if kind in ('th', 'td'):
        return TableCell(header=kind == 'th')
    if kind in SKIPPED_CONTAINERS:
        return None
    if kind in SIMPLE_TAGS:
        return SIMPLE_TAGS[kind]()
    return OtherTag(kind)


def iter_events(tokens: list) -> Iterator[Event]:
    """Convert a markdown-it token list (block level, with inline children) to events."""
    stack: list[Optional[Tag]] = []
    in_head = False
    for tok in tokens:
        if tok.type == 'inline':
            yield from _inline_events(tok.children or [])
        elif tok.type.endswith('_open'):
            if tok.type == 'paragraph_open' and tok.hidden:
                stack.append(None)
                continue
            if tok.type == 'thead_open':
                in_head = True
            tag = _open_tag(tok, in_head)
            stack.append(tag)
            if tag is not None:
                yield Start(tag)
        elif tok.type.endswith('_close'):
            if tok.type == 'thead_close':
                in_head = False
            tag = stack.pop() if stack else OtherTag(tok.type[:-len('_close')])
            if tag is not None:
                yield End(tag)
        elif tok.type in ('fence', 'code_block'):
            tag = CodeBlock(info=(tok.info or '').strip())
            yield Start(tag)
            if tok.content:
                yield Text(tok.content)
            yield End(tag)
        elif tok.type == 'html_block':
            yield Html(tok.content)
        elif tok.type == 'hr':
            yield Rule()
        else:
            yield Unsupported(tok.type)


def _inline_events(children: list) -> Iterator[Event]:
    stack: list[Tag] = []
    for tok in children:
        if tok.type == 'text':
            if tok.content:
                yield Text(tok.content)
        elif tok.type == 'softbreak':
            yield SoftBreak()
        elif tok.type == 'hardbreak':
            yield HardBreak()
        elif tok.type == 'code_inline':
            yield Code(tok.content)
        elif tok.type == 'html_inline':
            if TASK_CHECKBOX_CLASS in tok.content:
                yield TaskListMarker('checked' in tok.content)
            else:
                yield InlineHtml(tok.content)
        elif tok.type == 'image':
            tag = Image(dest=tok.attrGet('src') or '', title=tok.attrGet('title') or '')
            yield Start(tag)
            yield from _inline_events(tok.children or [])
            yield End(tag)
        elif tok.type.endswith('_open'):
            tag = _open_tag(tok, False)
            stack.append(tag)
            yield Start(tag)
        elif tok.type.endswith('_close'):
            yield End(stack.pop() if stack else OtherTag(tok.type[:-len('_close')]))
        else:
            yield Unsupported(tok.type)
