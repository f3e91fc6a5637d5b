"""
Identity resolution: bearer token -> AuthenticatedIdentity.

``resolve_identity`` is the first stage of every protected request. It only
verifies the token (signature, expiry, claim shapes); it performs no
database access, so a request that fails here never reaches a mapper.

All failures raise AuthenticationError. The reason distinguishes missing,
invalid and expired credentials for the logs; clients always get the same
401 response.
"""

import uuid
from dataclasses import dataclass

from jose import ExpiredSignatureError, JWTError

from colis.exceptions import AuthenticationError, AuthFailureReason
from colis.models.user import UserRole
from colis.security import create_access_token, decode_access_token


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """The caller of the current request, as asserted by a verified token."""
    user_id: uuid.UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


def issue_token(identity: AuthenticatedIdentity) -> str:
    """Sign a fresh bearer token embedding the identity's id and role."""
    return create_access_token(
        data={"sub": str(identity.user_id), "role": identity.role.value}
    )


def resolve_identity(token: str | None) -> AuthenticatedIdentity:
    """
    Verify a bearer token and return the identity it carries.

    Args:
        token: Raw token from the Authorization header, or None when the
               header is absent.

    Raises:
        AuthenticationError: MISSING_CREDENTIAL, EXPIRED_CREDENTIAL or
            INVALID_CREDENTIAL (bad signature, malformed token, missing or
            ill-typed "sub"/"role" claims).
    """
    if not token:
        raise AuthenticationError(AuthFailureReason.MISSING_CREDENTIAL)

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise AuthenticationError(AuthFailureReason.EXPIRED_CREDENTIAL)
    except JWTError:
        raise AuthenticationError(AuthFailureReason.INVALID_CREDENTIAL)

    try:
        user_id = uuid.UUID(payload["sub"])
        role = UserRole(payload["role"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError(AuthFailureReason.INVALID_CREDENTIAL)

    return AuthenticatedIdentity(user_id=user_id, role=role)
