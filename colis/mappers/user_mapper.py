"""
User mapper: registration, login and persistence of identity records.

Registration flow (``create_secure_user``):
  1. Reject the email if any user, active or not, already holds it
  2. Hash the plaintext password with Argon2id
  3. Insert the user; a unique-constraint race is reported as the same
     DuplicateEmailError

Login flow (``authenticate``):
  1. Look up the user by email
  2. Verify the password against the stored hash
  3. Sign a fresh bearer token carrying the user id and role

Security notes:
  - The plaintext password exists only in the call frame; it is never
    stored, returned or logged
  - Unknown email, wrong password and deactivated user all raise the same
    AuthenticationError, and an unknown email still pays for one hash
    verification, so neither the response nor its timing reveals which
    emails are registered

Deletion is soft: ``delete_by_key`` clears ``is_active``. Inactive users are
excluded from ``find_by_key`` and ``find_all``.
"""

import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from colis.exceptions import (
    AuthenticationError,
    AuthFailureReason,
    DuplicateEmailError,
    NotFoundError,
    Resource,
)
from colis.identity import AuthenticatedIdentity, issue_token
from colis.logging import get_logger
from colis.mappers.base import TableGateway, apply_patch
from colis.models.user import User, UserRole
from colis.security import dummy_verify, hash_password, verify_password

logger = get_logger(__name__)


class UserMapper:
    """Maps rows of the ``users`` table."""

    # Email and password changes go through the account surface
    UPDATABLE_FIELDS = frozenset(
        {
            "first_name",
            "last_name",
            "address",
            "comp_address",
            "zipcode",
            "city",
            "birth_date",
            "phone_number",
        }
    )

    def __init__(self, session: AsyncSession) -> None:
        self._table = TableGateway(session, User)

    async def find_by_key(self, key: uuid.UUID) -> User:
        """
        Return the active user with id ``key``.

        Raises:
            NotFoundError: If no such user exists or the user was deleted.
        """
        user = await self._table.get(key)
        if user is None or not user.is_active:
            raise NotFoundError(Resource.USER, key)
        return user

    async def find_all(self, role: UserRole | None = None) -> list[User]:
        """List active users, oldest first, optionally restricted to one role."""
        criteria = [User.is_active.is_(True)]
        if role is not None:
            criteria.append(User.role == role)
        return await self._table.select_where(*criteria)

    async def delete_by_key(self, key: uuid.UUID) -> None:
        """Soft-delete: the row stays, ``is_active`` becomes False."""
        user = await self.find_by_key(key)
        user.is_active = False
        await self._table.save(user)
        logger.info("user_deactivated", user_id=str(key))

    async def find_by_email(self, email: str) -> User | None:
        return await self._table.first_where(User.email == email)

    async def create_secure_user(
        self,
        registration: Mapping[str, Any],
        role: UserRole = UserRole.CUSTOMER,
    ) -> User:
        """
        Register a new user with a hashed password.

        Args:
            registration: Validated registration fields, including the
                plaintext ``password``.
            role: CUSTOMER or CARRIER. ADMIN is never self-assigned; the
                caller decides.

        Returns:
            The persisted User (carrying only the password hash).

        Raises:
            DuplicateEmailError: If the email is already registered. No row
                is written in that case.
        """
        fields = dict(registration)
        plain_password = fields.pop("password")
        email = fields["email"]

        if await self.find_by_email(email) is not None:
            raise DuplicateEmailError(email)

        user = User(
            **fields,
            hashed_password=hash_password(plain_password),
            role=role,
        )
        try:
            await self._table.insert(user)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            raise DuplicateEmailError(email)

        logger.info("user_registered", user_id=str(user.id), role=role.value)
        return user

    async def authenticate(
        self, email: str, password: str
    ) -> tuple[AuthenticatedIdentity, str]:
        """
        Check credentials and issue a bearer token.

        Returns:
            Tuple of (AuthenticatedIdentity, signed JWT).

        Raises:
            AuthenticationError: INVALID_CREDENTIAL for an unknown email, a
                wrong password or a deactivated user.
        """
        user = await self.find_by_email(email)

        if user is None:
            dummy_verify()
            raise AuthenticationError(
                AuthFailureReason.INVALID_CREDENTIAL, "Invalid email or password"
            )

        if not verify_password(password, user.hashed_password) or not user.is_active:
            raise AuthenticationError(
                AuthFailureReason.INVALID_CREDENTIAL, "Invalid email or password"
            )

        identity = AuthenticatedIdentity(user_id=user.id, role=user.role)
        return identity, issue_token(identity)

    async def update(self, user_id: uuid.UUID, patch: Mapping[str, Any]) -> User:
        """
        Partially update a user's profile fields.

        Raises:
            NotFoundError: If the user does not exist or was deleted.
        """
        user = await self.find_by_key(user_id)
        changed = apply_patch(user, patch, self.UPDATABLE_FIELDS)
        await self._table.save(user)
        logger.debug("user_mapper.update", user_id=str(user_id), fields=sorted(changed))
        return user
