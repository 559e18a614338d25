"""
Internship applications, each carrying a payment screenshot.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from mudbeaver.auth import require_admin
from mudbeaver.db import DbClient, InternshipApplication, UserRecord
from mudbeaver.dependencies import get_db_client, get_media_client
from mudbeaver.errors import FieldError, ValidationError
from mudbeaver.media import IMAGE_FORMATS, MediaClient
from mudbeaver.routes.common import get_or_404, save_after_upload, update_status
from mudbeaver.schemas import InternshipSubmission, StatusUpdate
from mudbeaver.uploads import read_single_upload, require_format

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internship", tags=["internship"])

PAYMENT_FOLDER = "mudbeaver/internships/payments"
NOT_FOUND = "Internship application not found"


@router.post("", status_code=201)
async def submit_internship(
    name: str | None = Form(None),
    date_of_birth: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    address: str | None = Form(None),
    city: str | None = Form(None),
    region: str | None = Form(None),
    zip_code: str | None = Form(None),
    institution: str | None = Form(None),
    payment_screenshot: UploadFile | None = File(None),
    db: DbClient = Depends(get_db_client),
    media: MediaClient = Depends(get_media_client),
):
    errors: list[FieldError] = []
    payload = None
    try:
        payload = InternshipSubmission.parse(
            {
                "name": name,
                "date_of_birth": date_of_birth,
                "email": email,
                "phone": phone,
                "address": address,
                "city": city,
                "region": region,
                "zip_code": zip_code,
                "institution": institution,
            }
        )
    except ValidationError as exc:
        errors.extend(exc.errors)

    try:
        screenshot = await read_single_upload(payment_screenshot, "payment_screenshot")
    except ValidationError as exc:
        errors.extend(exc.errors)
        screenshot = None
    else:
        if screenshot is None:
            errors.append(
                FieldError("payment_screenshot", "Payment screenshot is required")
            )
    if errors:
        raise ValidationError(errors)

    require_format(
        screenshot, "payment_screenshot", IMAGE_FORMATS,
        "Payment screenshot must be an image",
    )
    screenshot_url = media.upload_image(screenshot, PAYMENT_FOLDER)
    record = InternshipApplication(
        **payload.model_dump(), payment_screenshot=screenshot_url
    )
    application = save_after_upload(
        lambda: db.create_submission(record), [screenshot_url]
    )
    logger.info("Internship application %s received", application.id)
    return {
        "message": "Internship application submitted successfully",
        "internship": {
            "id": application.id,
            "name": application.name,
            "email": application.email,
            "phone": application.phone,
            "status": application.status,
            "createdAt": application.created_at.isoformat(),
        },
    }


@router.get("")
def list_internships(
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return [a.as_dict() for a in db.list_submissions(InternshipApplication)]


@router.get("/{application_id}")
def get_internship(
    application_id: str,
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return get_or_404(db, InternshipApplication, application_id, NOT_FOUND).as_dict()


@router.patch("/{application_id}/status")
def update_internship_status(
    application_id: str,
    payload: StatusUpdate,
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return update_status(
        db, InternshipApplication, application_id, payload.status, NOT_FOUND
    )
