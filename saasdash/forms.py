"""Validated write payloads for users, apps and assignments."""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, BeforeValidator, Field, field_validator, model_validator

EMAIL_PATTERN = r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

AppStatus = Literal["active", "inactive", "deprecated"]
AssignmentStatus = Literal["active", "revoked"]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _lower_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


# Empty form inputs are stored as NULL.
OptionalText = Annotated[str | None, BeforeValidator(_blank_to_none)]
DateText = Annotated[str, Field(pattern=DATE_PATTERN)]
OptionalDate = Annotated[DateText | None, BeforeValidator(_blank_to_none)]
EmailText = Annotated[str, BeforeValidator(_lower_email), Field(pattern=EMAIL_PATTERN)]


def _required(value: str, label: str) -> str:
    if not value.strip():
        raise ValueError(f"{label} is required")
    return value.strip()


class PatchModel(BaseModel):
    """Partial update: omitted fields are left alone, NOT NULL columns may not be set to null."""

    not_null: ClassVar[dict[str, str]] = {}

    @model_validator(mode="after")
    def _reject_nulls(self):
        for field, label in self.not_null.items():
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{label} is required")
        return self


class UserCreate(BaseModel):
    name: str
    email: EmailText
    job_role: OptionalText = None
    start_date: OptionalDate = None
    group: OptionalText = None
    team: OptionalText = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        return _required(value, "Name")


class UserPatch(PatchModel):
    not_null: ClassVar[dict[str, str]] = {"name": "Name", "email": "Email"}

    name: str | None = None
    email: EmailText | None = None
    job_role: OptionalText = None
    start_date: OptionalDate = None
    group: OptionalText = None
    team: OptionalText = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str | None) -> str | None:
        return None if value is None else _required(value, "Name")


class AppCreate(BaseModel):
    name: str
    category: OptionalText = None
    vendor: OptionalText = None
    tier: OptionalText = None
    owner_team: OptionalText = None
    sso_required: bool = False
    data_sensitivity: OptionalText = None
    status: AppStatus = "active"
    website_url: OptionalText = None
    notes: OptionalText = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        return _required(value, "Application name")


class AppPatch(PatchModel):
    not_null: ClassVar[dict[str, str]] = {
        "name": "Application name",
        "status": "Status",
        "sso_required": "SSO setting",
    }

    name: str | None = None
    category: OptionalText = None
    vendor: OptionalText = None
    tier: OptionalText = None
    owner_team: OptionalText = None
    sso_required: bool | None = None
    data_sensitivity: OptionalText = None
    status: AppStatus | None = None
    website_url: OptionalText = None
    notes: OptionalText = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str | None) -> str | None:
        return None if value is None else _required(value, "Application name")


class AssignmentCreate(BaseModel):
    user_id: str = Field(min_length=1)
    app_id: str = Field(min_length=1)
    role_in_app: OptionalText = None
    license_type: OptionalText = None
    access_level: OptionalText = None
    assigned_on: OptionalDate = None
    status: AssignmentStatus = "active"

    def to_row(self) -> dict[str, Any]:
        # no assigned_on means the database default (today) applies on insert
        row = self.model_dump()
        if row["assigned_on"] is None:
            del row["assigned_on"]
        return row


class AssignmentPatch(PatchModel):
    not_null: ClassVar[dict[str, str]] = {"status": "Status"}

    role_in_app: OptionalText = None
    license_type: OptionalText = None
    access_level: OptionalText = None
    assigned_on: OptionalDate = None
    status: AssignmentStatus | None = None
