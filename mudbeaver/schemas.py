"""
Pydantic schemas for form submissions and admin updates.
"""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from mudbeaver.errors import FieldError, ValidationError


def _truthy(value) -> bool:
    return value is True or value == "true"


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class FormModel(BaseModel):
    """Base for inbound payloads; ``parse`` reports per-field errors."""

    model_config = ConfigDict(str_strip_whitespace=True)

    error_messages: ClassVar[dict] = {}

    @classmethod
    def parse(cls, data: dict):
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(field_errors(exc, cls.error_messages)) from exc


def field_errors(exc: PydanticValidationError, messages: dict) -> list[FieldError]:
    errors: list[FieldError] = []
    seen: set[str] = set()
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        name = loc[0] if loc else "body"
        if name in seen:
            continue
        seen.add(name)
        errors.append(FieldError(field=name, message=messages.get(name, error["msg"])))
    return errors


class ContactSubmission(FormModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)

    error_messages: ClassVar[dict] = {
        "name": "Name is required",
        "email": "Please provide a valid email",
        "subject": "Subject is required",
        "message": "Message is required",
    }

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class InternshipSubmission(FormModel):
    name: str = Field(..., min_length=1)
    date_of_birth: Optional[date] = None
    email: EmailStr
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    institution: str = Field(..., min_length=1)

    error_messages: ClassVar[dict] = {
        "name": "Name is required",
        "date_of_birth": "Date of birth must be a valid date",
        "email": "Please provide a valid email",
        "phone": "Phone is required",
        "address": "Address is required",
        "city": "City is required",
        "region": "Region is required",
        "zip_code": "Zip code is required",
        "institution": "Institution is required",
    }

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def optional_dob(cls, value):
        return _blank_to_none(value)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class RequirementSubmission(FormModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    address: Optional[str] = None
    site_details: Optional[str] = None
    area: Optional[str] = None
    budget: Optional[str] = None
    category: Optional[str] = None
    services: Optional[str] = None
    message: Optional[str] = None

    error_messages: ClassVar[dict] = {
        "username": "Name is required",
        "email": "Please provide a valid email",
        "phone": "Phone is required",
    }

    @field_validator(
        "address", "site_details", "area", "budget", "category", "services", "message",
        mode="before",
    )
    @classmethod
    def optional_text(cls, value):
        return _blank_to_none(value)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class BlogCreate(FormModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    published: bool = False

    error_messages: ClassVar[dict] = {
        "title": "Title is required",
        "content": "Content is required",
    }

    @field_validator("published", mode="before")
    @classmethod
    def parse_published(cls, value) -> bool:
        return _truthy(value)


class BlogUpdate(FormModel):
    """Partial update; ``None`` means leave the field as it is."""

    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = Field(None, min_length=1)
    published: Optional[bool] = None
    replace_images: bool = False

    error_messages: ClassVar[dict] = {
        "title": "Title cannot be empty",
        "content": "Content cannot be empty",
    }

    @field_validator("published", mode="before")
    @classmethod
    def parse_published(cls, value) -> Optional[bool]:
        return None if value is None else _truthy(value)

    @field_validator("replace_images", mode="before")
    @classmethod
    def parse_replace_images(cls, value) -> bool:
        return _truthy(value)


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
