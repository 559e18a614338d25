"""
Intake of multipart files: type filter and size cap, applied before any
file is handed to the media host.
"""

from __future__ import annotations

from typing import Optional, Sequence

from fastapi import UploadFile

from mudbeaver.errors import FieldError, ValidationError
from mudbeaver.media import MediaFile, detect_format

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB


def is_allowed_content_type(content_type: str | None) -> bool:
    content_type = (content_type or "").lower()
    return content_type.startswith("image/") or content_type == "application/pdf"


def check_media_file(file: MediaFile, field: str) -> Optional[FieldError]:
    """Return the field error for a file that must not be uploaded, if any."""
    if not is_allowed_content_type(file.content_type):
        return FieldError(
            field=field,
            message="Invalid file type. Only images and PDFs are allowed.",
        )
    if file.size > MAX_UPLOAD_BYTES:
        return FieldError(field=field, message="File exceeds the 10 MB limit")
    return None


def require_format(
    file: MediaFile, field: str, formats: tuple[str, ...], message: str
) -> None:
    if detect_format(file) not in formats:
        raise ValidationError.single(field, message)


async def read_upload(upload: UploadFile | None) -> Optional[MediaFile]:
    """Read a multipart part into memory; empty parts count as no file."""
    if upload is None or not upload.filename:
        return None
    # One byte past the cap is enough to know the file is too large.
    data = await upload.read(MAX_UPLOAD_BYTES + 1)
    if not data:
        return None
    return MediaFile(
        filename=upload.filename,
        content_type=upload.content_type or "",
        data=data,
    )


async def read_uploads(
    uploads: Sequence[UploadFile] | None, field: str
) -> list[MediaFile]:
    """Read and check every part sent under ``field``."""
    files: list[MediaFile] = []
    errors: list[FieldError] = []
    for upload in uploads or []:
        file = await read_upload(upload)
        if file is None:
            continue
        error = check_media_file(file, field)
        if error:
            errors.append(error)
        else:
            files.append(file)
    if errors:
        raise ValidationError(errors)
    return files


async def read_single_upload(upload: UploadFile | None, field: str) -> Optional[MediaFile]:
    files = await read_uploads([upload] if upload is not None else [], field)
    return files[0] if files else None
