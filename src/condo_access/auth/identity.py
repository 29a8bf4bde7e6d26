"""Caller identity extraction from request credentials."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import jwt

from condo_access.auth.roles import Role
from condo_access.errors import MalformedCredentialError

BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class Principal:
    """Who the credential claims to be, before any store lookup."""

    user_id: str
    email: str | None = None


@dataclass(frozen=True)
class Identity:
    """A known, active user with their global role."""

    id: uuid.UUID
    global_role: Role | None
    email: str | None = None

    @property
    def is_global_admin(self) -> bool:
        return self.global_role is Role.GLOBAL_ADMIN


class IdentityResolver:
    """Turn credential material into a :class:`Principal`.

    Pure computation: signature checks never touch a store.

    Args:
        jwt_secret: HS secret for bearer tokens. ``None`` makes every
            presented token unverifiable.
        algorithm: JWT algorithm accepted for verification.
        allow_dev_header: Accept an opaque user id header when no
            bearer token is present.
    """

    def __init__(
        self,
        jwt_secret: str | None,
        *,
        algorithm: str = "HS256",
        allow_dev_header: bool = False,
    ) -> None:
        self._secret = jwt_secret
        self._algorithm = algorithm
        self._allow_dev_header = allow_dev_header

    def resolve(
        self,
        authorization: str | None,
        dev_user_id: str | None = None,
    ) -> Principal | None:
        """Resolve the caller, or ``None`` for an anonymous request.

        Raises:
            MalformedCredentialError: a credential is present but cannot
                be verified. Absence is never an error.
        """
        if authorization:
            return self._from_bearer(authorization)
        if self._allow_dev_header and dev_user_id:
            return Principal(user_id=dev_user_id.strip())
        return None

    def _from_bearer(self, authorization: str) -> Principal:
        if not authorization.lower().startswith(BEARER_PREFIX):
            raise MalformedCredentialError("malformed", "Expected a Bearer token")
        token = authorization[len(BEARER_PREFIX) :].strip()
        if not token:
            raise MalformedCredentialError("malformed", "Empty Bearer token")
        if self._secret is None:
            raise MalformedCredentialError(
                "unverifiable", "Token verification is not configured"
            )

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise MalformedCredentialError("expired", "Token expired") from e
        except jwt.InvalidTokenError as e:
            raise MalformedCredentialError("invalid", "Token invalid") from e

        sub = claims.get("sub")
        if not isinstance(sub, str) or not sub:
            raise MalformedCredentialError("invalid", "Token subject missing")
        email = claims.get("email")
        return Principal(user_id=sub, email=email if isinstance(email, str) else None)
