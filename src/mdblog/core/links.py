"""Resolution of reference links that have no definition in the document

Authors write cross references as reference links without definitions, e.g.
`[Tove Jansson][personname]`, `[serde][cargo]`, `[Fa 17/1984]`, or images as
`![alt][path {classes} caption]`. markdown-it leaves such links as plain
text, so a core rule finds them before inline parsing, asks a LinkResolver
for (url, title) and registers the answer under a unique reference label.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from markdown_it.common.utils import normalizeReference


logger = logging.getLogger(__name__)

FA_RE = re.compile(r'\b[Ff]a (?P<issues>(?P<issue>[1-9]\d?)(?:-[1-9]\d?)?)[ /](?P<year>(?:19|20)\d{2})\b')
EXTERNAL_RE = re.compile(r'^\[(.*)\]\[(\w+)(?::(\w+))?(?:[,\s]+(.*))?\]$', re.DOTALL)

_LABEL = r'(?:[^\[\]\\]|\\.)*'
REF_RE = re.compile(rf'(?P<bang>!?)\[(?P<text>{_LABEL})\](?:\[(?P<label>{_LABEL})\])?(?![(\[])')
CODE_SPAN_RE = re.compile(r'(`+)(?:.+?)\1', re.DOTALL)
TASK_MARKER_RE = re.compile(r'^\s*[xX]?\s*$')
SYNTHETIC_PREFIX = 'ref'

TITLES = {
    'sv': {
        'wp': 'Se {} på wikipedia',
        'sw': 'Se {} på seriewikin',
        'foldoc': 'Se {} i free online dictionary of computing',
    },
    'en': {
        'wp': 'See {} on wikipedia',
        'sw': 'See {} on seriewikin',
        'foldoc': 'See {} in the free online dictionary of computing',
    },
}


@dataclass(frozen=True)
class FaRef:
    """A magazine issue reference such as `Fa 17/1984` or `Fa 2-3 2019`."""
    issue: int
    year: int

    @classmethod
    def parse(cls, text: str) -> Optional["FaRef"]:
        m = FA_RE.search(text)
        if not m:
            return None
        return cls(issue=int(m.group('issue')), year=int(m.group('year')))

    def url(self) -> str:
        return f"https://fantomenindex.krats.se/{self.year}/{self.issue}"

    def cover(self) -> str:
        return f"https://fantomenindex.krats.se/c/f{self.year}-{self.issue}.jpg"


def fa_link(text: str) -> Optional[str]:
    """Index url for a magazine issue reference, or None."""
    ref = FaRef.parse(text)
    return ref.url() if ref else None


def _titles(lang: str) -> dict[str, str]:
    return TITLES.get(lang, TITLES['en'])


def wikilink(text: str, lang: str, extra: str = '', title_lang: str = 'en') -> tuple[str, str]:
    t = f"{text} ({extra})" if extra else text
    url = f"https://{lang}.wikipedia.org/wiki/{t.replace(' ', '_').replace(chr(0xad), '')}"
    return url, _titles(title_lang)['wp'].format(t)


def external_link(span: str, lang: str) -> Optional[tuple[str, str]]:
    """Resolve `[text][kind[:attr]][, extra]` for the known kinds, else None."""
    m = EXTERNAL_RE.match(span)
    if not m:
        return None
    text, kind, attr, extra = m.group(1), m.group(2), m.group(3) or '', m.group(4) or ''
    text = re.sub(r'\s+', ' ', text)
    titles = _titles(lang)
    if kind in ('personname', 'wp'):
        return wikilink(text, attr or lang, extra.strip(), title_lang=lang)
    if kind == 'sw':
        return (
            f"https://seriewikin.serieframjandet.se/index.php/{text.replace(' ', '_')}",
            titles['sw'].format(text),
        )
    if kind == 'cargo':
        return f"https://lib.rs/crates/{text}", ''
    if kind == 'foldoc':
        return f"https://foldoc.org/{text}", titles['foldoc'].format(text)
    if kind == 'rfc':
        return f"http://www.faqs.org/rfcs/rfc{attr}.html", f"RFC {attr}"
    return None


class LinkResolver:
    """Priority ordered resolution of a broken link label into (url, title).

    1. a local asset of the document, 2. an external reference kind,
    3. a magazine issue shorthand, 4. the label itself.
    """

    def __init__(self, lang: str = 'en', files: Iterable[tuple[str, str]] = ()):
        self.lang = lang
        self.files = dict(files)

    def lookup(self, label: str, span: str) -> Optional[tuple[str, str]]:
        """Rules 1-3 only; None when nothing matches."""
        ref = label.strip('`')
        if ref in self.files:
            return self.files[ref], ''
        found = external_link(span, self.lang)
        if found:
            return found
        url = fa_link(ref)
        if url:
            return url, ''
        return None

    def resolve(self, label: str, span: str) -> tuple[str, str]:
        return self.lookup(label, span) or (label, '')


def _code_spans(content: str) -> list[tuple[int, int]]:
    return [m.span() for m in CODE_SPAN_RE.finditer(content)]


def _in_spans(pos: int, spans: list[tuple[int, int]]) -> bool:
    return any(start <= pos < end for start, end in spans)


def broken_links_plugin(md, resolver: LinkResolver) -> None:
    """Register a core rule resolving undefined reference links through resolver."""

    def resolve_broken_links(state) -> None:
        references = state.env.setdefault('references', {})
        counter = [0]

        def register(url: str, title: str) -> str:
            counter[0] += 1
            key = f"{SYNTHETIC_PREFIX}{counter[0]}"
            references[normalizeReference(key)] = {'href': url, 'title': title, 'map': None}
            return key

        def replace(m: re.Match, spans: list[tuple[int, int]]) -> str:
            if _in_spans(m.start(), spans):
                return m.group(0)
            text, label = m.group('text'), m.group('label')
            if label is None:
                # shortcut `[text]`; the label of a full reference whose text had brackets
                # is recognized by the preceding `]`
                if TASK_MARKER_RE.match(text) or text.startswith('^'):
                    return m.group(0)
                if normalizeReference(text) in references:
                    return m.group(0)
                found = resolver.lookup(text, m.group(0))
                if found is None:
                    return m.group(0)
                key = register(*found)
                if m.start() > 0 and m.string[m.start() - 1] == ']' and not m.group('bang'):
                    return f"[{key}]"
                return f"{m.group('bang')}[{text}][{key}]"
            name = label or text
            if not name.strip() or normalizeReference(name) in references:
                return m.group(0)
            url, title = resolver.resolve(name, m.group(0))
            logger.debug("Resolved reference %r to %r", name, url)
            return f"{m.group('bang')}[{text}][{register(url, title)}]"

        for token in state.tokens:
            if token.type != 'inline' or '[' not in token.content:
                continue
            spans = _code_spans(token.content)
            token.content = REF_RE.sub(lambda m: replace(m, spans), token.content)

    md.core.ruler.before('inline', 'broken_links', resolve_broken_links)
