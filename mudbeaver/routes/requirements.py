"""
Service requirement / appointment submissions with optional drawings.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from mudbeaver.auth import require_admin
from mudbeaver.db import DbClient, Requirement, UserRecord
from mudbeaver.dependencies import get_db_client, get_media_client
from mudbeaver.media import PDF_FORMATS, MediaClient
from mudbeaver.routes.common import get_or_404, save_after_upload, update_status
from mudbeaver.schemas import RequirementSubmission, StatusUpdate
from mudbeaver.uploads import read_single_upload, require_format

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/requirements", tags=["requirements"])

DRAWINGS_FOLDER = "mudbeaver/requirements/drawings"
NOT_FOUND = "Requirement not found"


@router.post("", status_code=201)
async def submit_requirement(
    username: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    address: str | None = Form(None),
    site_details: str | None = Form(None),
    area: str | None = Form(None),
    budget: str | None = Form(None),
    category: str | None = Form(None),
    services: str | None = Form(None),
    message: str | None = Form(None),
    drawings: UploadFile | None = File(None),
    db: DbClient = Depends(get_db_client),
    media: MediaClient = Depends(get_media_client),
):
    payload = RequirementSubmission.parse(
        {
            "username": username,
            "email": email,
            "phone": phone,
            "address": address,
            "site_details": site_details,
            "area": area,
            "budget": budget,
            "category": category,
            "services": services,
            "message": message,
        }
    )
    drawings_file = await read_single_upload(drawings, "drawings")

    drawings_url = None
    if drawings_file is not None:
        require_format(drawings_file, "drawings", PDF_FORMATS, "Drawings must be a PDF")
        drawings_url = media.upload_pdf(drawings_file, DRAWINGS_FOLDER)

    record = Requirement(**payload.model_dump(), drawings=drawings_url)
    requirement = save_after_upload(
        lambda: db.create_submission(record), [drawings_url]
    )
    logger.info("Requirement %s received", requirement.id)
    return {
        "message": "Requirement submitted successfully",
        "requirement": {
            "id": requirement.id,
            "username": requirement.username,
            "email": requirement.email,
            "phone": requirement.phone,
            "status": requirement.status,
            "createdAt": requirement.created_at.isoformat(),
        },
    }


@router.get("")
def list_requirements(
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return [r.as_dict() for r in db.list_submissions(Requirement)]


@router.get("/{requirement_id}")
def get_requirement(
    requirement_id: str,
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return get_or_404(db, Requirement, requirement_id, NOT_FOUND).as_dict()


@router.patch("/{requirement_id}/status")
def update_requirement_status(
    requirement_id: str,
    payload: StatusUpdate,
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return update_status(db, Requirement, requirement_id, payload.status, NOT_FOUND)
