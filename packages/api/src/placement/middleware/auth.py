# This project was developed with assistance from AI tools.
"""Keycloak bearer-token authentication for placement routes.

Tokens are RS256 JWTs issued by the configured realm. The realm's signing
keys are cached for ``JWKS_CACHE_TTL`` seconds and re-fetched once when a
token names a key id the cache does not know (key rotation).

Agency users must carry an ``agency_id`` claim; it becomes their data
scope. ``AUTH_DISABLED=true`` skips validation and acts as a system admin.
"""

import logging
import time
from typing import Annotated

import httpx
import jwt
from db.enums import UserRole
from fastapi import Depends, HTTPException, Request, status

from ..core.auth import AGENCY_ROLES, build_data_scope
from ..core.config import settings
from ..schemas.auth import DataScope, TokenPayload, UserContext

logger = logging.getLogger(__name__)

# Highest privilege first; a token holding several roles acts as the first match.
ROLE_PRECEDENCE = (UserRole.SYSTEM_ADMIN, UserRole.AGENCY_ADMIN, UserRole.AGENCY_USER)


def _realm_url() -> str:
    return f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}"


class JwksCache:
    """Realm signing keys, indexed by key id."""

    def __init__(self, ttl: float):
        self.ttl = ttl
        self._keys: dict[str, jwt.PyJWK] = {}
        self._loaded_at = 0.0

    def _stale(self) -> bool:
        return not self._keys or time.monotonic() - self._loaded_at > self.ttl

    def _load(self) -> None:
        response = httpx.get(f"{_realm_url()}/protocol/openid-connect/certs", timeout=5)
        response.raise_for_status()
        key_set = jwt.PyJWKSet.from_dict(response.json())
        self._keys = {k.key_id: k for k in key_set.keys if k.key_id}
        self._loaded_at = time.monotonic()

    def signing_key(self, kid: str | None) -> jwt.PyJWK:
        if self._stale():
            self._load()
        key = self._keys.get(kid)
        if key is None:
            self._load()
            key = self._keys.get(kid)
        if key is None:
            raise jwt.InvalidTokenError(f"Unknown signing key {kid!r}")
        return key


_jwks = JwksCache(ttl=settings.JWKS_CACHE_TTL)


def _bearer_token(request: Request) -> str | None:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def _decode_token(token: str) -> TokenPayload:
    """Verify signature and issuer, return the claims."""
    kid = jwt.get_unverified_header(token).get("kid")
    try:
        key = _jwks.signing_key(kid)
    except httpx.HTTPError as exc:
        logger.error("Keycloak JWKS unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc

    claims = jwt.decode(
        token,
        key.key,
        algorithms=["RS256"],
        issuer=_realm_url(),
        options={"verify_aud": False},
    )
    return TokenPayload(**claims)


def _resolve_role(token_payload: TokenPayload) -> UserRole:
    """Pick the placement role from ``realm_access.roles``, ignoring Keycloak built-ins."""
    granted = set(token_payload.realm_access.get("roles", []))
    for role in ROLE_PRECEDENCE:
        if role.value in granted:
            return role
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="No recognized role assigned",
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


_DISABLED_USER = UserContext(
    user_id="dev-user",
    role=UserRole.SYSTEM_ADMIN,
    email="dev@placement.local",
    name="Dev User",
    data_scope=DataScope(full_pipeline=True),
)


async def get_current_user(request: Request) -> UserContext:
    """FastAPI dependency: the authenticated caller with their data scope."""
    if settings.AUTH_DISABLED:
        return _DISABLED_USER

    token = _bearer_token(request)
    if token is None:
        raise _unauthorized("Missing authentication token")

    try:
        payload = _decode_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc

    role = _resolve_role(payload)
    if role in AGENCY_ROLES and payload.agency_id is None:
        logger.warning("Token for %s has role %s but no agency_id claim", payload.sub, role.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Agency role without an agency assignment",
        )

    return UserContext(
        user_id=payload.sub,
        role=role,
        email=payload.email,
        name=payload.name or payload.preferred_username,
        agency_id=payload.agency_id,
        data_scope=build_data_scope(role, payload.agency_id),
    )


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory restricting a route to the given roles (403 otherwise)."""

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed_roles:
            logger.warning(
                "Role %s denied for user %s (allowed: %s)",
                user.role.value,
                user.user_id,
                ", ".join(r.value for r in allowed_roles),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check
