"""
Blog routes: public reading by slug or id, admin authoring.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from mudbeaver.auth import require_admin
from mudbeaver.config import Settings, get_settings
from mudbeaver.db import BlogPost, DbClient, UserRecord
from mudbeaver.dependencies import get_db_client, get_media_client
from mudbeaver.errors import NotFoundError
from mudbeaver.media import IMAGE_FORMATS, MediaClient
from mudbeaver.routes.common import reclaim_media, save_after_upload
from mudbeaver.schemas import BlogCreate, BlogUpdate, MessageResponse
from mudbeaver.slugs import assign_unique_slug, is_object_id, resolve_post
from mudbeaver.uploads import read_uploads, require_format

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blogs", tags=["blogs"])

BLOG_FOLDER = "mudbeaver/blogs"
NOT_FOUND = "Blog post not found"


def serialize_posts(db: DbClient, posts: list[BlogPost]) -> list[dict]:
    """Project posts for clients, with the author reduced to id/name/email."""
    authors: dict[str, dict | None] = {}
    payload = []
    for post in posts:
        if post.author_id not in authors:
            user = db.get_user(post.author_id)
            authors[post.author_id] = user.summary() if user else None
        data = post.as_dict()
        data.pop("author_id")
        data["author"] = authors[post.author_id]
        payload.append(data)
    return payload


def serialize_post(db: DbClient, post: BlogPost) -> dict:
    return serialize_posts(db, [post])[0]


def _upload_images(media: MediaClient, files) -> list[str]:
    for file in files:
        require_format(
            file, "images", IMAGE_FORMATS,
            f"Images must be one of: {', '.join(IMAGE_FORMATS)}",
        )
    return [media.upload_image(file, BLOG_FOLDER) for file in files]


@router.get("")
def list_published_blogs(db: DbClient = Depends(get_db_client)):
    return serialize_posts(db, db.list_blogs(published=True))


@router.get("/all")
def list_all_blogs(
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return serialize_posts(db, db.list_blogs())


@router.get("/{identifier}")
def get_blog(
    identifier: str,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """
    Look a post up by slug or id. Missing and unpublished posts produce the
    same 404 so drafts are not discoverable.
    """
    post = resolve_post(db, identifier)
    if post is None or not post.published:
        logger.info(
            "Blog %r not served (%s)",
            identifier,
            "missing" if post is None else "unpublished",
        )
        debug = None
        if not settings.is_production:
            debug = {"identifier": identifier, "isObjectId": is_object_id(identifier)}
        raise NotFoundError(NOT_FOUND, debug=debug)
    return serialize_post(db, post)


@router.post("", status_code=201)
async def create_blog(
    title: str | None = Form(None),
    content: str | None = Form(None),
    published: str | None = Form(None),
    images: list[UploadFile] | None = File(None),
    admin: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    media: MediaClient = Depends(get_media_client),
):
    payload = BlogCreate.parse(
        {"title": title, "content": content, "published": published}
    )
    files = (await read_uploads(images, "images"))[: BlogPost.MAX_IMAGES]
    urls = _upload_images(media, files)

    post = BlogPost(
        title=payload.title,
        content=payload.content,
        author_id=admin.id,
        images=urls,
        published=payload.published,
        slug=assign_unique_slug(db, payload.title),
    )
    created = save_after_upload(lambda: db.create_blog(post), urls)
    logger.info("Blog %s created with slug %r", created.id, created.slug)
    return {
        "message": "Blog post created successfully",
        "blog": serialize_post(db, created),
    }


@router.put("/{blog_id}")
async def update_blog(
    blog_id: str,
    title: str | None = Form(None),
    content: str | None = Form(None),
    published: str | None = Form(None),
    replace_images: str | None = Form(None, alias="replaceImages"),
    images: list[UploadFile] | None = File(None),
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    media: MediaClient = Depends(get_media_client),
):
    payload = BlogUpdate.parse(
        {
            "title": title,
            "content": content,
            "published": published,
            "replace_images": replace_images,
        }
    )
    files = await read_uploads(images, "images")

    post = db.get_blog(blog_id)
    if post is None:
        raise NotFoundError(NOT_FOUND)

    changes: dict = {}
    if payload.title is not None:
        changes["title"] = payload.title
        if payload.title != post.title or not post.slug:
            changes["slug"] = assign_unique_slug(db, payload.title, exclude_id=post.id)
    if payload.content is not None:
        changes["content"] = payload.content
    if payload.published is not None:
        changes["published"] = payload.published

    urls: list[str] = []
    released: list[str] = []
    if files:
        if payload.replace_images:
            urls = _upload_images(media, files[: BlogPost.MAX_IMAGES])
            changes["images"] = urls
            released = [url for url in post.images if url not in urls]
        else:
            # Existing images keep their place; only what still fits is uploaded.
            room = max(BlogPost.MAX_IMAGES - len(post.images), 0)
            urls = _upload_images(media, files[:room])
            changes["images"] = (post.images + urls)[: BlogPost.MAX_IMAGES]

    updated = save_after_upload(lambda: db.update_blog(blog_id, changes), urls)
    if updated is None:
        raise NotFoundError(NOT_FOUND)
    if released:
        reclaim_media(media, released)
    logger.info("Blog %s updated (%s)", blog_id, ", ".join(sorted(changes)) or "no changes")
    return {
        "message": "Blog post updated successfully",
        "blog": serialize_post(db, updated),
    }


@router.delete("/{blog_id}", response_model=MessageResponse)
def delete_blog(
    blog_id: str,
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    media: MediaClient = Depends(get_media_client),
):
    post = db.get_blog(blog_id)
    if post is None or not db.delete_blog(blog_id):
        raise NotFoundError(NOT_FOUND)
    reclaim_media(media, post.images)
    logger.info("Blog %s deleted", blog_id)
    return MessageResponse(message="Blog post deleted successfully")
