# This project was developed with assistance from AI tools.
"""Tests for JWT authentication middleware and data scoping."""

from unittest.mock import patch

import pytest
from db.enums import UserRole
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from placement.core.auth import build_data_scope
from placement.core.config import settings
from placement.middleware.auth import CurrentUser, _resolve_role, require_roles
from placement.schemas.auth import TokenPayload


def _me_app(*dependencies):
    app = FastAPI()

    @app.get("/me", dependencies=list(dependencies))
    async def me(user: CurrentUser):
        return {
            "user_id": user.user_id,
            "role": user.role.value,
            "agency_id": user.agency_id,
            "full_pipeline": user.data_scope.full_pipeline,
        }

    return app


# ---------------------------------------------------------------------------
# AUTH_DISABLED bypass
# ---------------------------------------------------------------------------


def test_auth_disabled_returns_dev_admin(monkeypatch):
    """When AUTH_DISABLED=true, any request gets a dev system admin."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)

    resp = TestClient(_me_app()).get("/me")

    assert resp.status_code == 200
    body = resp.json()
    assert body["user_id"] == "dev-user"
    assert body["role"] == "system_admin"
    assert body["full_pipeline"] is True


# ---------------------------------------------------------------------------
# Missing / malformed token
# ---------------------------------------------------------------------------


def test_missing_token_returns_401(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get("/me")

    assert resp.status_code == 401
    assert "Missing authentication token" in resp.json()["detail"]


def test_agency_role_without_agency_claim_is_403(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)
    payload = TokenPayload(sub="u-1", email="a@b.c", realm_access={"roles": ["agency_user"]})

    with patch("placement.middleware.auth._decode_token", return_value=payload):
        resp = TestClient(_me_app()).get("/me", headers={"Authorization": "Bearer t"})

    assert resp.status_code == 403


def test_agency_token_scoped_to_agency(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)
    payload = TokenPayload(
        sub="u-1",
        email="a@b.c",
        name="Riley Agent",
        agency_id=7,
        realm_access={"roles": ["offline_access", "agency_admin"]},
    )

    with patch("placement.middleware.auth._decode_token", return_value=payload):
        resp = TestClient(_me_app()).get("/me", headers={"Authorization": "Bearer t"})

    assert resp.status_code == 200
    assert resp.json() == {
        "user_id": "u-1",
        "role": "agency_admin",
        "agency_id": 7,
        "full_pipeline": False,
    }


# ---------------------------------------------------------------------------
# Role resolution
# ---------------------------------------------------------------------------


def test_resolve_role_picks_known_role():
    payload = TokenPayload(
        sub="user-1",
        realm_access={"roles": ["offline_access", "system_admin", "uma_authorization"]},
    )
    assert _resolve_role(payload) == UserRole.SYSTEM_ADMIN


def test_resolve_role_prefers_higher_privilege():
    payload = TokenPayload(
        sub="user-1",
        agency_id=7,
        realm_access={"roles": ["agency_user", "agency_admin"]},
    )
    assert _resolve_role(payload) == UserRole.AGENCY_ADMIN


def test_resolve_role_no_known_role_is_forbidden():
    payload = TokenPayload(
        sub="user-1",
        realm_access={"roles": ["offline_access", "uma_authorization"]},
    )
    with pytest.raises(HTTPException) as exc_info:
        _resolve_role(payload)
    assert exc_info.value.status_code == 403


def test_data_scope_by_role():
    assert build_data_scope(UserRole.SYSTEM_ADMIN, None).full_pipeline
    assert build_data_scope(UserRole.AGENCY_USER, 7).agency_id == 7
    assert build_data_scope(UserRole.AGENCY_USER, None).agency_id == -1


# ---------------------------------------------------------------------------
# require_roles dependency
# ---------------------------------------------------------------------------


def test_require_roles_rejects_wrong_role(monkeypatch):
    """dev-user is a system admin, not an agency user."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)

    app = _me_app(Depends(require_roles(UserRole.AGENCY_USER, UserRole.AGENCY_ADMIN)))
    resp = TestClient(app).get("/me")

    assert resp.status_code == 403
    assert "Insufficient permissions" in resp.json()["detail"]


def test_require_roles_allows_listed_role(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)

    app = _me_app(Depends(require_roles(UserRole.SYSTEM_ADMIN)))
    resp = TestClient(app).get("/me")

    assert resp.status_code == 200
