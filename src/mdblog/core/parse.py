"""File discovery, metadata extraction and typed metadata accessors"""

import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from mdblog.core.errors import MetadataError
from mdblog.core.models import AssetSpec, MarkdownDocument, UpdateInfo


MD_EXTENSIONS = {'.md'}
ASSET_SPEC_RE = re.compile(r'^([\w.-]+)\s+\{([\w-]+/[\w.+-]+)\}$')


def extract_metadata(src: str) -> tuple[dict[str, str], str]:
    """Split leading `key: value` lines from src. Returns (metadata, trimmed body).

    Extraction stops at the first blank line, the first line without a colon
    or the first heading line. Later duplicate keys overwrite earlier ones.
    """
    meta: dict[str, str] = {}
    rest = src
    while rest:
        line, sep, remainder = rest.partition('\n')
        if not line.strip() or line.lstrip().startswith('#') or ':' not in line:
            break
        key, _, value = line.partition(':')
        meta[key.strip()] = value.strip()
        rest = remainder if sep else ''
    return meta, rest.strip()


def parse_date(value: str, key: str = 'pubdate') -> datetime:
    """Parse an ISO-8601 date or timestamp; raise MetadataError when malformed."""
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise MetadataError(f"Bad {key} date {value!r}: {e}") from e


def get_pubdate(meta: dict[str, str]) -> Optional[datetime]:
    value = meta.get('pubdate')
    return parse_date(value) if value else None


def get_update(meta: dict[str, str]) -> Optional[UpdateInfo]:
    """`update: <date> <note>`; the note may be empty."""
    value = meta.get('update')
    if not value:
        return None
    date, _, note = value.strip().partition(' ')
    return UpdateInfo(date=parse_date(date, 'update'), note=note.strip())


def get_assets(meta: dict[str, str]) -> list[AssetSpec]:
    """`res: <name> {<mime>}, ...` asset declarations."""
    specs = []
    for item in meta.get('res', '').split(','):
        item = item.strip()
        if not item:
            continue
        m = ASSET_SPEC_RE.match(item)
        if not m:
            raise MetadataError(f"Bad asset spec {item!r}")
        specs.append(AssetSpec(name=m.group(1), mime=m.group(2)))
    return specs


def is_meta(meta: dict[str, str]) -> bool:
    """A `meta:` line marks a page outside the dated post archive."""
    return 'meta' in meta


def get_tags(meta: dict[str, str]) -> list[str]:
    return [t.strip() for t in meta.get('tags', '').split(',') if t.strip()]


def is_dotfile(path: Path) -> bool:
    return path.name.startswith('.')


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md files under path, or [path] if a single file. Dotfiles and dot-dirs are skipped."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(
        p for p in path.rglob('*')
        if p.suffix in MD_EXTENSIONS and p.is_file()
        and not any(is_dotfile(Path(part)) for part in p.relative_to(path).parts)
    )


def split_name(path: Path, default_lang: str = 'en') -> tuple[str, str]:
    """`<slug>.<lang>.md` -> (slug, lang); a missing language gives default_lang."""
    slug, _, lang = path.stem.partition('.')
    return slug, lang or default_lang


def load_text(raw: str, slug: str = '', lang: str = 'en', path: Path = None) -> MarkdownDocument:
    meta, body = extract_metadata(raw)
    return MarkdownDocument(raw=raw, metadata=meta, body=body, path=path, slug=slug, lang=lang)


def load_file(path: Path, default_lang: str = 'en') -> MarkdownDocument:
    """Read a post source file into a MarkdownDocument."""
    slug, lang = split_name(path, default_lang)
    return load_text(path.read_text(encoding='utf-8'), slug=slug, lang=lang, path=path)
