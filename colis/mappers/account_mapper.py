"""
Account mapper: persistence for the per-user credentials surface.

Accounts are addressed by their owning user id. A user without an account
is a normal state: ``find_by_owning_user`` returns None, while ``update``
and ``delete_by_owning_user`` raise NotFoundError because there is nothing
to act on. The account of a deactivated user is treated as absent.

The account's email and password are the login credentials: ``update``
writes them onto the owning User in the same flush.
"""

import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from colis.exceptions import DuplicateEmailError, NotFoundError, Resource
from colis.logging import get_logger
from colis.mappers.base import TableGateway, apply_patch
from colis.models.account import Account
from colis.models.user import User
from colis.security import hash_password

logger = get_logger(__name__)


class AccountMapper:
    """Maps rows of the ``accounts`` table."""

    UPDATABLE_FIELDS = frozenset({"username", "email", "hashed_password"})

    # Account fields mirrored onto the owning user
    CREDENTIAL_FIELDS = frozenset({"email", "hashed_password"})

    def __init__(self, session: AsyncSession) -> None:
        self._table = TableGateway(session, Account)
        self._users = TableGateway(session, User)

    async def find_by_key(self, key: uuid.UUID) -> Account:
        account = await self._table.get(key)
        if account is None:
            raise NotFoundError(Resource.ACCOUNT, key)
        return account

    async def find_all(self, **filters: Any) -> list[Account]:
        criteria = [getattr(Account, name) == value for name, value in filters.items()]
        return await self._table.select_where(*criteria)

    async def delete_by_key(self, key: uuid.UUID) -> None:
        account = await self.find_by_key(key)
        await self._table.delete(account)
        logger.info("account_deleted", account_id=str(key))

    async def find_by_owning_user(self, user_id: uuid.UUID) -> Account | None:
        """Return the account of an active user, or None if there is none."""
        logger.debug("account_mapper.find_by_owning_user", user_id=str(user_id))
        return await self._table.first_where(
            Account.user_id == user_id,
            User.is_active.is_(True),
            join=Account.user,
        )

    async def create_for_user(self, user: User) -> Account:
        """
        Create the account derived from a freshly registered user.

        The username defaults to the local part of the email address; the
        password hash is copied, never recomputed from plaintext.
        """
        account = Account(
            user_id=user.id,
            username=user.email.split("@", 1)[0],
            email=user.email,
            hashed_password=user.hashed_password,
        )
        return await self._table.insert(account)

    async def update(self, user_id: uuid.UUID, patch: Mapping[str, Any]) -> Account:
        """
        Partially update the account owned by ``user_id``.

        Args:
            user_id: The owning user.
            patch: Any subset of ``username``, ``email`` and ``password``.
                   A plaintext ``password`` is hashed before it is merged.

        Returns:
            The full account after the update. A new email or password is
            also the one the user logs in with from now on.

        Raises:
            NotFoundError: If the user has no account.
            DuplicateEmailError: If another user already holds the new email.
        """
        account = await self.find_by_owning_user(user_id)
        if account is None:
            raise NotFoundError(Resource.ACCOUNT, user_id, by_owner=True)
        owner = await self._users.get(user_id)

        changes = dict(patch)
        if changes.get("password") is not None:
            changes["hashed_password"] = hash_password(changes.pop("password"))
        else:
            changes.pop("password", None)

        email = changes.get("email")
        if email is not None and email != owner.email:
            if await self._users.first_where(User.email == email) is not None:
                raise DuplicateEmailError(email)

        changed = apply_patch(account, changes, self.UPDATABLE_FIELDS)
        credentials = {k: v for k, v in changes.items() if k in self.CREDENTIAL_FIELDS}
        apply_patch(owner, credentials, self.CREDENTIAL_FIELDS)
        try:
            await self._table.save(account)
        except IntegrityError:
            # Lost a race with another user taking the same email
            raise DuplicateEmailError(email)

        logger.debug(
            "account_mapper.update",
            user_id=str(user_id),
            fields=sorted(changed),
        )
        return account

    async def delete_by_owning_user(self, user_id: uuid.UUID) -> None:
        account = await self.find_by_owning_user(user_id)
        if account is None:
            raise NotFoundError(Resource.ACCOUNT, user_id, by_owner=True)
        await self._table.delete(account)
        logger.info("account_deleted", user_id=str(user_id))
