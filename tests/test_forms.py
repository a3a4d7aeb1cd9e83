"""Tests for the write-payload models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from saasdash.forms import AppCreate, AppPatch, AssignmentCreate, AssignmentPatch, UserCreate, UserPatch


class TestUserCreate:
    def test_email_is_lowercased_and_blanks_become_null(self):
        user = UserCreate(name=" Dana ", email=" Dana@Example.COM ", team="", job_role="  ")
        assert user.name == "Dana"
        assert user.email == "dana@example.com"
        assert user.team is None
        assert user.job_role is None

    @pytest.mark.parametrize("email", ["", "plain", "a@b", "a b@c.com", "a@b.c"])
    def test_bad_email(self, email):
        with pytest.raises(ValidationError):
            UserCreate(name="Dana", email=email)

    def test_name_required(self):
        with pytest.raises(ValidationError, match="Name is required"):
            UserCreate(name="   ", email="dana@example.com")

    def test_start_date_format(self):
        assert UserCreate(name="D", email="d@example.com", start_date="2024-05-01").start_date == "2024-05-01"
        assert UserCreate(name="D", email="d@example.com", start_date="").start_date is None
        with pytest.raises(ValidationError):
            UserCreate(name="D", email="d@example.com", start_date="05/01/2024")


def test_user_patch_only_dumps_given_fields():
    patch = UserPatch(team="Core")
    assert patch.model_dump(exclude_unset=True) == {"team": "Core"}


def test_user_patch_rejects_blank_name():
    with pytest.raises(ValidationError):
        UserPatch(name="")


class TestAppCreate:
    def test_defaults(self):
        app = AppCreate(name="Linear")
        assert app.status == "active"
        assert app.sso_required is False

    def test_status_enum(self):
        with pytest.raises(ValidationError):
            AppCreate(name="Linear", status="retired")

    def test_name_required(self):
        with pytest.raises(ValidationError, match="Application name is required"):
            AppCreate(name="")

    def test_blank_optionals_become_null(self):
        app = AppCreate(name="Linear", vendor="", website_url="")
        assert app.vendor is None
        assert app.website_url is None


def test_app_patch_status():
    assert AppPatch(status="deprecated").model_dump(exclude_unset=True) == {"status": "deprecated"}


@pytest.mark.parametrize(
    "model,payload,message",
    [
        (UserPatch, {"name": None}, "Name is required"),
        (UserPatch, {"email": None}, "Email is required"),
        (AppPatch, {"name": None}, "Application name is required"),
        (AppPatch, {"status": None}, "Status is required"),
        (AppPatch, {"sso_required": None}, "SSO setting is required"),
        (AssignmentPatch, {"status": None}, "Status is required"),
    ],
)
def test_patch_rejects_explicit_null_for_not_null_columns(model, payload, message):
    with pytest.raises(ValidationError, match=message):
        model(**payload)


def test_patch_allows_null_for_nullable_columns():
    assert UserPatch(team=None).model_dump(exclude_unset=True) == {"team": None}
    assert AppPatch(vendor=None, website_url="").model_dump(exclude_unset=True) == {"vendor": None, "website_url": None}


class TestAssignments:
    def test_to_row_omits_missing_date(self):
        row = AssignmentCreate(user_id="u1", app_id="a1", role_in_app="Admin").to_row()
        assert "assigned_on" not in row
        assert row["status"] == "active"

    def test_to_row_keeps_date(self):
        row = AssignmentCreate(user_id="u1", app_id="a1", assigned_on="2024-01-01").to_row()
        assert row["assigned_on"] == "2024-01-01"

    def test_status_enum(self):
        with pytest.raises(ValidationError):
            AssignmentCreate(user_id="u1", app_id="a1", status="paused")
        with pytest.raises(ValidationError):
            AssignmentPatch(status="inactive")

    def test_ids_required(self):
        with pytest.raises(ValidationError):
            AssignmentCreate(user_id="", app_id="a1")
