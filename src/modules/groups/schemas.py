"""Schemas for Groups module."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


def _unique_ids(v: list[int] | None) -> list[int] | None:
    if v is None:
        return v
    return list(dict.fromkeys(v))


class GroupCreate(BaseModel):
    """Schema for creating a group, optionally with its initial students."""

    title: str = Field(..., min_length=1, max_length=200)
    course_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    student_ids: list[int] | None = None

    @field_validator("student_ids")
    @classmethod
    def dedupe_student_ids(cls, v):
        """Drop repeated ids, keeping the first occurrence."""
        return _unique_ids(v)


class GroupUpdate(BaseModel):
    """Schema for updating a group. student_ids, when given, replaces the roster."""

    title: str | None = Field(None, min_length=1, max_length=200)
    course_price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    student_ids: list[int] | None = None

    @field_validator("student_ids")
    @classmethod
    def dedupe_student_ids(cls, v):
        """Drop repeated ids, keeping the first occurrence."""
        return _unique_ids(v)


class GroupRosterUpdate(BaseModel):
    """Replace the full list of students enrolled in a group."""

    student_ids: list[int] = []

    @field_validator("student_ids")
    @classmethod
    def dedupe_student_ids(cls, v):
        """Drop repeated ids, keeping the first occurrence."""
        return _unique_ids(v)


class GroupMemberAdd(BaseModel):
    student_id: int


class GroupResponse(BaseModel):
    """Schema for group response."""

    id: int
    title: str
    course_price: Decimal
    created_at: datetime
    students_count: int = 0

    model_config = {"from_attributes": True}


class GroupStudentResponse(BaseModel):
    """Student as listed inside a group."""

    id: int
    fullname: str
    phone_number: str
    payment_due: int

    model_config = {"from_attributes": True}
