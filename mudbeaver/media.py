"""
Media upload adapter for an S3-compatible public bucket, plus an in-memory
double for tests and local runs.

Uploads return a publicly resolvable URL. The object key doubles as the
public id accepted by ``delete_file``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Protocol
from uuid import uuid4

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from mudbeaver.errors import UploadError

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_FOLDER = "mudbeaver"
DEFAULT_DOCUMENT_FOLDER = "mudbeaver/documents"

IMAGE_FORMATS = ("jpg", "jpeg", "png", "gif", "webp")
PDF_FORMATS = ("pdf",)

_CONTENT_TYPE_FORMATS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "application/pdf": "pdf",
}


@dataclass
class MediaFile:
    """A file received from a client, held in memory."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def detect_format(file: MediaFile) -> Optional[str]:
    """Return the lower-case format of a file, by extension then content type."""
    _, ext = os.path.splitext(file.filename or "")
    ext = ext.lstrip(".").lower()
    if ext:
        return ext
    return _CONTENT_TYPE_FORMATS.get((file.content_type or "").lower())


def _checked_format(file: MediaFile, allowed: tuple[str, ...]) -> str:
    fmt = detect_format(file)
    if fmt not in allowed:
        raise UploadError(
            f"Format {fmt or 'unknown'!r} not allowed; expected one of {', '.join(allowed)}"
        )
    return fmt


def _object_key(folder: str, fmt: str) -> str:
    return f"{folder.strip('/')}/{uuid4().hex}.{fmt}"


class MediaClient(Protocol):
    """Operations the routes need from the media host."""

    def upload_image(self, file: MediaFile, folder: str = DEFAULT_IMAGE_FOLDER) -> str:
        ...

    def upload_pdf(self, file: MediaFile, folder: str = DEFAULT_DOCUMENT_FOLDER) -> str:
        ...

    def delete_file(self, public_id: str) -> bool:
        ...

    def public_id_from_url(self, url: str) -> Optional[str]:
        ...


@dataclass
class InMemoryMediaClient:
    """Test double for media uploads."""

    base_url: str = "https://media.example.test"
    stored_objects: dict = field(default_factory=dict)
    deleted: list = field(default_factory=list)
    # When set, every upload fails with this message.
    fail_with: Optional[str] = None

    def _store(self, file: MediaFile, folder: str, allowed: tuple[str, ...]) -> str:
        fmt = _checked_format(file, allowed)
        if self.fail_with:
            raise UploadError(self.fail_with, remote_error=ConnectionError(self.fail_with))
        key = _object_key(folder, fmt)
        self.stored_objects[key] = file.data
        return f"{self.base_url}/{key}"

    def upload_image(self, file: MediaFile, folder: str = DEFAULT_IMAGE_FOLDER) -> str:
        return self._store(file, folder, IMAGE_FORMATS)

    def upload_pdf(self, file: MediaFile, folder: str = DEFAULT_DOCUMENT_FOLDER) -> str:
        return self._store(file, folder, PDF_FORMATS)

    def delete_file(self, public_id: str) -> bool:
        if public_id not in self.stored_objects:
            return False
        del self.stored_objects[public_id]
        self.deleted.append(public_id)
        return True

    def public_id_from_url(self, url: str) -> Optional[str]:
        prefix = f"{self.base_url}/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):]

    def reset(self) -> None:
        self.stored_objects.clear()
        self.deleted.clear()
        self.fail_with = None


@dataclass
class MediaConfig:
    """Connection details for the media bucket, built once at startup."""

    bucket: str
    public_base_url: str
    region: str = ""
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""


class S3MediaClient:
    """
    Media host backed by an S3-compatible bucket served publicly from
    ``public_base_url``.
    """

    def __init__(self, config: MediaConfig):
        self.config = config
        self._client = boto3.client(
            "s3",
            endpoint_url=config.endpoint or None,
            region_name=config.region or None,
            aws_access_key_id=config.access_key_id or None,
            aws_secret_access_key=config.secret_access_key or None,
            config=Config(
                s3={"addressing_style": "virtual"},
                signature_version="s3v4",
            ),
        )

    def _public_url(self, key: str) -> str:
        return f"{self.config.public_base_url.rstrip('/')}/{key}"

    def _put(self, key: str, body: bytes, content_type: str) -> str:
        try:
            self._client.put_object(
                Bucket=self.config.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Upload of %s to bucket %s failed: %s", key, self.config.bucket, exc)
            raise UploadError(str(exc), remote_error=exc) from exc
        return self._public_url(key)

    def upload_image(self, file: MediaFile, folder: str = DEFAULT_IMAGE_FOLDER) -> str:
        fmt = _checked_format(file, IMAGE_FORMATS)
        content_type = file.content_type or f"image/{'jpeg' if fmt in ('jpg', 'jpeg') else fmt}"
        return self._put(_object_key(folder, fmt), file.data, content_type)

    def upload_pdf(self, file: MediaFile, folder: str = DEFAULT_DOCUMENT_FOLDER) -> str:
        fmt = _checked_format(file, PDF_FORMATS)
        # Stored as a raw object so the host never tries to transform it.
        return self._put(_object_key(folder, fmt), file.data, "application/octet-stream")

    def delete_file(self, public_id: str) -> bool:
        try:
            self._client.delete_object(Bucket=self.config.bucket, Key=public_id)
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Could not delete %s from bucket %s: %s", public_id, self.config.bucket, exc)
            return False
        return True

    def public_id_from_url(self, url: str) -> Optional[str]:
        prefix = f"{self.config.public_base_url.rstrip('/')}/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):]
