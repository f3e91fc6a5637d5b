"""
FastAPI dependencies: the authentication and authorization stages.

Every protected endpoint declares one of the identity dependencies as its
first parameter, so FastAPI resolves them before the endpoint body (and
before any mapper) runs:

  get_current_identity (bearer token -> AuthenticatedIdentity)     401
      ├── get_authorized_identity (identity + {user_id} -> owner/admin) 403
      └── require_admin (identity -> admin only)                   403

The mapper providers hand each endpoint a mapper bound to the request's
database session.
"""

import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from colis.authorization import ensure_owner_or_admin, ensure_role
from colis.database import get_db
from colis.identity import AuthenticatedIdentity, resolve_identity
from colis.mappers import AccountMapper, CarrierMapper, UserMapper
from colis.models.user import UserRole


# Reads "Authorization: Bearer <token>". auto_error=False lets a missing
# header reach resolve_identity, which reports it as MISSING_CREDENTIAL.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/users/login", auto_error=False)


async def get_current_identity(
    token: str | None = Depends(oauth2_scheme),
) -> AuthenticatedIdentity:
    """
    Resolve the caller from the bearer token.

    Raises:
        AuthenticationError: Missing, invalid or expired token (401).
    """
    return resolve_identity(token)


async def get_authorized_identity(
    user_id: uuid.UUID,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
) -> AuthenticatedIdentity:
    """
    Resolve the caller and check they may act on the ``{user_id}`` route target.

    Raises:
        AuthenticationError: From get_current_identity (401).
        AuthorizationError: The caller is neither the target user nor an admin (403).
    """
    ensure_owner_or_admin(identity, user_id)
    return identity


async def require_admin(
    identity: AuthenticatedIdentity = Depends(get_current_identity),
) -> AuthenticatedIdentity:
    """Allow only admins (AuthorizationError INSUFFICIENT_ROLE otherwise)."""
    ensure_role(identity, UserRole.ADMIN)
    return identity


# ---------------------------------------------------------------------------
# Mapper providers
# ---------------------------------------------------------------------------

async def get_user_mapper(db: AsyncSession = Depends(get_db)) -> UserMapper:
    return UserMapper(db)


async def get_account_mapper(db: AsyncSession = Depends(get_db)) -> AccountMapper:
    return AccountMapper(db)


async def get_carrier_mapper(db: AsyncSession = Depends(get_db)) -> CarrierMapper:
    return CarrierMapper(db)
