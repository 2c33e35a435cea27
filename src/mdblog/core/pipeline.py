"""Pipeline step functions: render one document, and import a batch of source files"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlmodel import Session

from mdblog.clients.images import ImageSession
from mdblog.clients.oembed import OEmbedClient
from mdblog.config import Settings
from mdblog.core.errors import RenderError
from mdblog.core.links import LinkResolver
from mdblog.core.markdown import parse_events, split_title
from mdblog.core.models import MarkdownDocument, PageRef, RenderOutput, UpdateInfo
from mdblog.core.parse import discover_files, get_assets, get_pubdate, get_tags, get_update, is_meta, load_file
from mdblog.core.render.context import RenderContext
from mdblog.core.render.directives import MAP_SIGNATURE
from mdblog.core.render.html import render_html
from mdblog.core.render.summary import summarize
from mdblog.core.teaser import adjust_teaser, find_front_image_url, find_teaser_cut
from mdblog.crud.assets import AssetStore, SqlAssetStore, load_assets
from mdblog.crud.metapages import commit_metapage, is_metapage_unchanged
from mdblog.crud.posts import DRAFT_MARK, commit_post, delete_stale_drafts, is_unchanged


logger = logging.getLogger(__name__)


def render_markdown(markdown: str, ctx: RenderContext, resolver: LinkResolver) -> tuple[str, str, str]:
    """Render markdown starting with a `# Title`. Returns (title html, body html, description)."""
    title_events, events = split_title(parse_events(markdown, resolver))
    title = render_html(title_events, ctx)
    return title, render_html(events, ctx), summarize(events)


def render_document(
    doc: MarkdownDocument,
    ctx: RenderContext,
    teaser_min_length: int = 900,
    teaser_window: int = 700,
    update: Optional[UpdateInfo] = None,
    ) -> RenderOutput:
    """Render a document to title, body, teaser and description."""
    title, body, description = render_markdown(doc.body, ctx, LinkResolver(doc.lang, doc.files))
    cut = find_teaser_cut(doc.body, teaser_min_length, teaser_window)
    if cut is None:
        teaser = body
    else:
        logger.debug("Teaser of %s cut at %d (%s)", ctx.page.url(), cut.offset, cut.reason)
        teaser_md = adjust_teaser(doc.body[:cut.offset], doc.body, ctx.page, update)
        _, teaser, description = render_markdown(teaser_md, ctx, LinkResolver(doc.lang, doc.files))
    return RenderOutput(
        title=title,
        body_html=body,
        teaser_html=teaser,
        description=description,
        front_image=find_front_image_url(teaser),
        uses_map=MAP_SIGNATURE in body,
    )


def document_year(doc: MarkdownDocument) -> int:
    pubdate = get_pubdate(doc.metadata)
    return (pubdate or datetime.now()).year


def render_file(
    doc: MarkdownDocument,
    settings: Settings,
    assets: AssetStore,
    images: Optional[ImageSession] = None,
    embeds: Optional[OEmbedClient] = None,
    ) -> RenderOutput:
    """Store the document's declared assets, then render it. Drafts get a title mark.

    A meta page renders to title and body only: no assets, teaser or draft mark.
    """
    if is_meta(doc.metadata):
        ctx = RenderContext(PageRef(datetime.now().year, doc.slug, doc.lang), images, assets, embeds,
                            settings.publish_images)
        title, body, description = render_markdown(doc.body, ctx, LinkResolver(doc.lang))
        return RenderOutput(title=title, body_html=body, teaser_html="", description=description)
    page = PageRef(document_year(doc), doc.slug, doc.lang)
    doc.files = load_assets(doc.path, get_assets(doc.metadata), page.year, assets)
    ctx = RenderContext(page, images, assets, embeds, settings.publish_images)
    output = render_document(
        doc, ctx, settings.teaser_min_length, settings.teaser_window, get_update(doc.metadata),
    )
    if get_pubdate(doc.metadata) is None:
        output = output.model_copy(update={"title": output.title + DRAFT_MARK})
    return output


# --- batch import ---

@dataclass
class ImportJob:
    doc: MarkdownDocument
    page: PageRef
    output: Optional[RenderOutput] = None
    error: Optional[str] = None

    @property
    def meta(self) -> bool:
        return is_meta(self.doc.metadata)

    def url(self) -> str:
        return f"/{self.page.slug}.{self.page.lang}" if self.meta else self.page.url()


@dataclass
class ImportReport:
    counts: dict[str, int] = field(default_factory=lambda: {
        "created": 0, "updated": 0, "unchanged": 0, "skipped": 0, "failed": 0,
    })
    changes: list[tuple[str, str]] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)


def _prepare(path: Path, engine, settings: Settings, force: bool, include_drafts: bool,
             report: ImportReport) -> Optional[ImportJob]:
    """Load a file and decide whether it needs rendering."""
    try:
        doc = load_file(path, settings.default_lang)
        pubdate = None if is_meta(doc.metadata) else get_pubdate(doc.metadata)
    except (RenderError, OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read %s: %s", path, e)
        report.counts["failed"] += 1
        report.failures.append((str(path), str(e)))
        return None
    if is_meta(doc.metadata):
        if not force:
            with Session(engine) as session:
                if is_metapage_unchanged(session, doc.slug, doc.lang, doc.raw):
                    report.counts["unchanged"] += 1
                    return None
        return ImportJob(doc, PageRef(datetime.now().year, doc.slug, doc.lang))
    if pubdate is None and not include_drafts:
        logger.warning("Skipping draft %s", path)
        report.counts["skipped"] += 1
        return None
    page = PageRef(document_year(doc), doc.slug, doc.lang)
    if not force:
        with Session(engine) as session:
            if is_unchanged(session, page.year, page.slug, page.lang, doc.raw):
                report.counts["unchanged"] += 1
                return None
    return ImportJob(doc, page)


def _render_job(job: ImportJob, settings: Settings, assets: AssetStore,
                images: Optional[ImageSession], embeds: Optional[OEmbedClient]) -> ImportJob:
    try:
        job.output = render_file(job.doc, settings, assets, images, embeds)
    except (RenderError, ValueError, OSError) as e:
        logger.error("Failed to render %s: %s", job.doc.path, e)
        job.error = str(e)
    return job


def _persist(session: Session, job: ImportJob, force: bool) -> str:
    doc, page = job.doc, job.page
    if job.meta:
        _, status = commit_metapage(session, page.slug, page.lang, doc.raw, job.output, force=force)
        session.commit()
        return status
    if page.year == datetime.now().year:
        # a recent post may have been imported as a draft under another year
        removed = delete_stale_drafts(session, page.slug, doc.raw)
        if removed:
            logger.info("Removed %d stale draft(s) of %s", removed, page.slug)
    update = get_update(doc.metadata)
    _, status = commit_post(
        session, page.year, page.slug, page.lang, doc.raw, job.output,
        posted_at=get_pubdate(doc.metadata),
        updated_at=update.date if update else None,
        tags=get_tags(doc.metadata) if "tags" in doc.metadata else None,
        force=force,
    )
    session.commit()
    return status


def run_read(
    paths: list[str],
    engine,
    settings: Settings,
    force: bool = False,
    include_drafts: bool = False,
    images: Optional[ImageSession] = None,
    embeds: Optional[OEmbedClient] = None,
    assets: Optional[AssetStore] = None,
    ) -> ImportReport:
    """Import source files under paths into the post store.

    Documents render in up to `settings.workers` threads and are persisted on
    the calling thread. A document that fails is logged and counted, and the
    stored version of it is left untouched.
    """
    report = ImportReport()
    assets = assets or SqlAssetStore(engine)
    jobs = []
    for path in paths:
        for p in discover_files(Path(path)):
            job = _prepare(p, engine, settings, force, include_drafts, report)
            if job is not None:
                jobs.append(job)

    with ThreadPoolExecutor(max_workers=settings.workers) as pool:
        rendered = list(pool.map(lambda j: _render_job(j, settings, assets, images, embeds), jobs))

    with Session(engine) as session:
        for job in rendered:
            if job.error is not None:
                report.counts["failed"] += 1
                report.failures.append((str(job.doc.path), job.error))
                continue
            status = _persist(session, job, force)
            report.counts[status] += 1
            if status != "unchanged":
                report.changes.append((status, job.url()))
    return report
