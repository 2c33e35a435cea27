"""Post persistence: lookup by (year, slug, lang), upsert with change detection, tagging"""

from datetime import datetime
from typing import Optional

from sqlmodel import Session, col, select

from mdblog.core.models import RenderOutput
from mdblog.core.utils.slug import slugify
from mdblog.crud.models import Post, PostTag, Tag


DRAFT_MARK = " \U0001f58b"


def get_post(session: Session, year: int, slug: str, lang: str) -> Post | None:
    """Return the Post with the given key, or None if not found."""
    return session.exec(
        select(Post).where(Post.year == year).where(Post.slug == slug).where(Post.lang == lang)
    ).one_or_none()


def is_unchanged(session: Session, year: int, slug: str, lang: str, raw: str) -> bool:
    """True when a stored post has exactly this raw markdown."""
    post = get_post(session, year, slug, lang)
    return post is not None and post.orig_md == raw


def delete_stale_drafts(session: Session, slug: str, raw: str) -> int:
    """Delete draft versions of slug whose markdown differs from raw. Returns count deleted.

    A draft is stored under the year it was last imported, so publishing it
    later may move it to another key; the stale copy would otherwise linger.
    """
    stale = session.exec(
        select(Post)
        .where(Post.slug == slug)
        .where(col(Post.title).endswith(DRAFT_MARK))
        .where(Post.orig_md != raw)
    ).all()
    for post in stale:
        for link in session.exec(select(PostTag).where(PostTag.post_id == post.id)).all():
            session.delete(link)
        session.delete(post)
    session.flush()
    return len(stale)


def tag_post(session: Session, post: Post, tags: list[str]) -> None:
    """Replace the tags of post; tags are matched case-insensitively by name and created on demand."""
    for link in session.exec(select(PostTag).where(PostTag.post_id == post.id)).all():
        session.delete(link)
    session.flush()
    seen = set()
    for name in tags:
        slug = slugify(name)
        if not slug or slug in seen:
            continue
        seen.add(slug)
        tag = session.exec(select(Tag).where(Tag.slug == slug)).first()
        if tag is None:
            tag = Tag(name=name, slug=slug)
            session.add(tag)
            session.flush()
        session.add(PostTag(post_id=post.id, tag_id=tag.id))
    session.flush()


def commit_post(
    session: Session,
    year: int,
    slug: str,
    lang: str,
    raw: str,
    output: RenderOutput,
    posted_at: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
    tags: Optional[list[str]] = None,
    force: bool = False,
    ) -> tuple[Post, str]:
    """Upsert a rendered post.

    Returns (post, status) where status is 'created', 'updated', or 'unchanged'.
    Flushes but does not commit; caller controls the transaction.
    """
    post = get_post(session, year, slug, lang)

    if post:
        if post.orig_md == raw and not force:
            return post, 'unchanged'
        post.title = output.title
        post.teaser = output.teaser_html
        post.content = output.body_html
        post.description = output.description
        post.front_image = output.front_image
        post.use_leaflet = output.uses_map
        post.orig_md = raw
        if updated_at:
            post.updated_at = updated_at
        session.add(post)
        session.flush()
        status = 'updated'
    else:
        post = Post(
            year=year,
            slug=slug,
            lang=lang,
            title=output.title,
            teaser=output.teaser_html,
            content=output.body_html,
            description=output.description,
            front_image=output.front_image,
            use_leaflet=output.uses_map,
            orig_md=raw,
            posted_at=posted_at,
            updated_at=updated_at or posted_at,
        )
        session.add(post)
        session.flush()
        status = 'created'

    if tags is not None:
        tag_post(session, post, tags)
    return post, status
