"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from mudbeaver.config import get_settings
from mudbeaver.db import DbClient, InMemoryDbClient, SqlDbClient
from mudbeaver.media import InMemoryMediaClient, MediaClient, MediaConfig, S3MediaClient

_db_client: DbClient | None = None
_media_client: MediaClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton document store client shared across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def get_media_client() -> MediaClient:
    global _media_client
    if _media_client:
        return _media_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.media_bucket:
        _media_client = InMemoryMediaClient()
    else:
        config = MediaConfig(
            bucket=settings.media_bucket,
            public_base_url=settings.media_public_base_url
            or f"https://{settings.media_bucket}.s3.amazonaws.com",
            region=settings.media_region or "",
            endpoint=settings.media_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
        )
        _media_client = S3MediaClient(config)
    return _media_client
