"""
Helpers shared by the per-entity routers.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Type, TypeVar

from fastapi import Request
from fastapi.responses import JSONResponse

from mudbeaver.db import DbClient, S
from mudbeaver.errors import NotFoundError, PersistenceError
from mudbeaver.media import MediaClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def read_body(request: Request) -> dict:
    """Accept JSON as well as urlencoded/multipart bodies."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            # Malformed JSON is reported field by field like an empty body.
            return {}
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def save_after_upload(save: Callable[[], T], uploaded: Iterable[str]) -> T:
    """Run ``save``; if it fails, log the uploads that are now orphaned."""
    try:
        return save()
    except PersistenceError:
        orphaned = [url for url in uploaded if url]
        if orphaned:
            logger.warning("Save failed, orphaned uploads: %s", ", ".join(orphaned))
        raise


def reclaim_media(media: MediaClient, urls: Iterable[str]) -> int:
    """Best-effort removal of uploads no longer referenced by any record."""
    removed = 0
    for url in urls:
        public_id = media.public_id_from_url(url)
        if not public_id:
            continue
        if media.delete_file(public_id):
            removed += 1
        else:
            logger.warning("Could not reclaim %s", url)
    return removed


def get_or_404(db: DbClient, kind: Type[S], record_id: str, not_found: str) -> S:
    record = db.get_submission(kind, record_id)
    if record is None:
        raise NotFoundError(not_found)
    return record


def update_status(
    db: DbClient, kind: Type[S], record_id: str, status: Optional[str], not_found: str
):
    """Apply an admin status change after checking it against the closed set."""
    if status not in kind.STATUSES:
        return JSONResponse(status_code=400, content={"message": "Invalid status"})
    record = db.update_submission_status(kind, record_id, status)
    if record is None:
        raise NotFoundError(not_found)
    logger.info("%s %s status set to %s", kind.__name__, record_id, status)
    return record.as_dict()
