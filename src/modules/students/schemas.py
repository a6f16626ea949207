"""Schemas for Students module."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

# Digits with an optional leading +, after dropping spaces, dashes and brackets
PHONE_REGEX = re.compile(r"^\+?[0-9]{7,15}$")


def _normalize_phone(v: str) -> str:
    normalized = re.sub(r"[\s\-()]", "", v)
    if not PHONE_REGEX.match(normalized):
        raise ValueError("Phone must contain 7-15 digits, optionally starting with +")
    return normalized


def _strip_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Full name is required")
    return v


def _unique_ids(v: list[int] | None) -> list[int] | None:
    if v is None:
        return v
    return list(dict.fromkeys(v))


class StudentCreate(BaseModel):
    """Schema for creating a student, optionally enrolled in groups."""

    fullname: str = Field(..., min_length=1, max_length=200)
    phone_number: str = Field(..., min_length=5, max_length=30)
    payment_due: int = Field(..., ge=1, le=31, description="Day of month the fee is due")
    address: str | None = None
    group_ids: list[int] | None = None

    @field_validator("fullname")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_name(v)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _normalize_phone(v)

    @field_validator("group_ids")
    @classmethod
    def dedupe_group_ids(cls, v):
        return _unique_ids(v)


class StudentUpdate(BaseModel):
    """Schema for updating a student. group_ids, when given, replaces enrollments."""

    fullname: str | None = Field(None, min_length=1, max_length=200)
    phone_number: str | None = Field(None, min_length=5, max_length=30)
    payment_due: int | None = Field(None, ge=1, le=31)
    address: str | None = None
    group_ids: list[int] | None = None

    @field_validator("fullname")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_name(v)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        """Validate phone format if provided."""
        if v is None:
            return v
        return _normalize_phone(v)

    @field_validator("group_ids")
    @classmethod
    def dedupe_group_ids(cls, v):
        return _unique_ids(v)


class StudentGroupResponse(BaseModel):
    id: int
    title: str

    model_config = {"from_attributes": True}


class StudentResponse(BaseModel):
    """Schema for student response."""

    id: int
    fullname: str
    phone_number: str
    payment_due: int
    address: str | None
    created_at: datetime
    groups: list[StudentGroupResponse] = []

    model_config = {"from_attributes": True}
