"""
Blog slug derivation and resolution of client-supplied identifiers.

A post may be addressed either by its store id or by its slug. Legacy posts
may lack a slug, so resolution tries an ordered list of strategies and
stops at the first hit.
"""

from __future__ import annotations

import logging
import re
from typing import AbstractSet, Callable, Optional

from mudbeaver.db import BlogPost, DbClient

logger = logging.getLogger(__name__)

_NON_SLUG_RUN = re.compile(r"[^a-z0-9]+")
_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{24}$")


def derive_slug(title: str) -> str:
    """Lower-case, collapse runs outside ``[a-z0-9]`` to one hyphen, trim hyphens."""
    return _NON_SLUG_RUN.sub("-", (title or "").lower()).strip("-")


def is_object_id(identifier: str) -> bool:
    return bool(_OBJECT_ID.match(identifier or ""))


def assign_unique_slug(
    db: DbClient,
    title: str,
    *,
    exclude_id: Optional[str] = None,
    taken: AbstractSet[str] = frozenset(),
) -> Optional[str]:
    """
    Derive the slug for ``title`` and suffix it with ``-2``, ``-3``, ... until
    no other post holds it. Titles without any ASCII alphanumerics get no slug.

    Id-shaped candidates are skipped since they would resolve as ids, and so
    are the slugs in ``taken`` (reserved but not yet written).
    """
    base = derive_slug(title)
    if not base:
        return None
    slug = base
    index = 2
    while True:
        if not is_object_id(slug) and slug not in taken:
            holder = db.find_blog_by_slug(slug)
            if holder is None or holder.id == exclude_id:
                return slug
        slug = f"{base}-{index}"
        index += 1


ResolutionStrategy = Callable[[DbClient, str], Optional[BlogPost]]


def by_slug(db: DbClient, identifier: str) -> Optional[BlogPost]:
    if is_object_id(identifier):
        return None
    return db.find_blog_by_slug(identifier)


def by_id(db: DbClient, identifier: str) -> Optional[BlogPost]:
    if not is_object_id(identifier):
        return None
    return db.get_blog(identifier)


def by_published_scan(db: DbClient, identifier: str) -> Optional[BlogPost]:
    if is_object_id(identifier):
        return None
    for post in db.list_blogs(published=True):
        if post.slug == identifier:
            return post
    return None


RESOLUTION_STRATEGIES: tuple[ResolutionStrategy, ...] = (
    by_slug,
    by_id,
    by_published_scan,
)


def resolve_post(
    db: DbClient,
    identifier: str,
    strategies: tuple[ResolutionStrategy, ...] = RESOLUTION_STRATEGIES,
) -> Optional[BlogPost]:
    """Return the first post any strategy finds, regardless of publication state."""
    for strategy in strategies:
        post = strategy(db, identifier)
        if post is not None:
            logger.debug("Resolved %r via %s", identifier, strategy.__name__)
            return post
    return None


def backfill_slugs(db: DbClient, *, dry_run: bool = False) -> list[tuple[str, str]]:
    """
    Give every slug-less post a unique slug. Safe to re-run: posts that
    already have a slug are skipped. Returns ``(post id, slug)`` pairs.
    """
    assigned: list[tuple[str, str]] = []
    reserved: set[str] = set()
    # Oldest first so earlier posts keep the unsuffixed slug.
    for post in reversed(db.list_blogs()):
        if post.slug:
            continue
        slug = assign_unique_slug(db, post.title, exclude_id=post.id, taken=reserved)
        if not slug:
            logger.warning("Post %s has no sluggable title %r", post.id, post.title)
            continue
        if not dry_run:
            db.update_blog(post.id, {"slug": slug})
        reserved.add(slug)
        assigned.append((post.id, slug))
    return assigned
