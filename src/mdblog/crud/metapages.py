"""Meta page persistence: lookup by (slug, lang), upsert with change detection"""

from sqlmodel import Session, select

from mdblog.core.models import RenderOutput
from mdblog.crud.models import MetaPage


def get_metapage(session: Session, slug: str, lang: str) -> MetaPage | None:
    return session.exec(
        select(MetaPage).where(MetaPage.slug == slug).where(MetaPage.lang == lang)
    ).one_or_none()


def is_metapage_unchanged(session: Session, slug: str, lang: str, raw: str) -> bool:
    page = get_metapage(session, slug, lang)
    return page is not None and page.orig_md == raw


def commit_metapage(
    session: Session,
    slug: str,
    lang: str,
    raw: str,
    output: RenderOutput,
    force: bool = False,
    ) -> tuple[MetaPage, str]:
    """Upsert a rendered meta page; only its title and body are kept.

    Returns (page, status) with status 'created', 'updated', or 'unchanged'.
    Flushes but does not commit.
    """
    page = get_metapage(session, slug, lang)
    if page:
        if page.orig_md == raw and not force:
            return page, 'unchanged'
        page.title = output.title
        page.content = output.body_html
        page.orig_md = raw
        status = 'updated'
    else:
        page = MetaPage(slug=slug, lang=lang, title=output.title, content=output.body_html, orig_md=raw)
        status = 'created'
    session.add(page)
    session.flush()
    return page, status
