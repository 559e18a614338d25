"""
Contact form intake.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from mudbeaver.auth import require_admin
from mudbeaver.db import ContactMessage, DbClient, UserRecord
from mudbeaver.dependencies import get_db_client
from mudbeaver.routes.common import get_or_404, read_body, update_status
from mudbeaver.schemas import ContactSubmission, StatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact", tags=["contact"])

NOT_FOUND = "Contact not found"


@router.post("", status_code=201)
async def submit_contact(request: Request, db: DbClient = Depends(get_db_client)):
    payload = ContactSubmission.parse(await read_body(request))
    contact = db.create_submission(ContactMessage(**payload.model_dump()))
    logger.info("Contact message %s received", contact.id)
    return {
        "message": "Contact form submitted successfully",
        "contact": {
            "id": contact.id,
            "name": contact.name,
            "email": contact.email,
            "subject": contact.subject,
            "message": contact.message,
            "status": contact.status,
            "createdAt": contact.created_at.isoformat(),
        },
    }


@router.get("")
def list_contacts(
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return [c.as_dict() for c in db.list_submissions(ContactMessage)]


@router.get("/{contact_id}")
def get_contact(
    contact_id: str,
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return get_or_404(db, ContactMessage, contact_id, NOT_FOUND).as_dict()


@router.patch("/{contact_id}/status")
def update_contact_status(
    contact_id: str,
    payload: StatusUpdate,
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return update_status(db, ContactMessage, contact_id, payload.status, NOT_FOUND)
