"""
HTTP routes for the site backend.
"""

from __future__ import annotations

from fastapi import APIRouter

from mudbeaver.routes import blogs, contact, internships, requirements

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


router.include_router(blogs.router)
router.include_router(contact.router)
router.include_router(internships.router)
router.include_router(requirements.router)
