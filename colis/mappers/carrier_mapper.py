"""Carrier mapper: persistence for delivery profiles, addressed by owning user."""

import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from colis.exceptions import NotFoundError, Resource
from colis.logging import get_logger
from colis.mappers.base import TableGateway, apply_patch
from colis.models.carrier import Carrier
from colis.models.user import User

logger = get_logger(__name__)


class CarrierMapper:
    """Maps rows of the ``carriers`` table."""

    UPDATABLE_FIELDS = frozenset(
        {"vehicle_type", "license_plate", "coverage_area", "capacity_kg", "is_available"}
    )

    def __init__(self, session: AsyncSession) -> None:
        self._table = TableGateway(session, Carrier)

    async def find_by_key(self, key: uuid.UUID) -> Carrier:
        carrier = await self._table.get(key)
        if carrier is None:
            raise NotFoundError(Resource.CARRIER, key)
        return carrier

    async def find_all(self, **filters: Any) -> list[Carrier]:
        criteria = [getattr(Carrier, name) == value for name, value in filters.items()]
        return await self._table.select_where(*criteria)

    async def delete_by_key(self, key: uuid.UUID) -> None:
        carrier = await self.find_by_key(key)
        await self._table.delete(carrier)
        logger.info("carrier_deleted", carrier_id=str(key))

    async def find_by_owning_user(self, user_id: uuid.UUID) -> Carrier | None:
        """Return the carrier profile of an active user, or None."""
        logger.debug("carrier_mapper.find_by_owning_user", user_id=str(user_id))
        return await self._table.first_where(
            Carrier.user_id == user_id,
            User.is_active.is_(True),
            join=Carrier.user,
        )

    async def create_for_user(self, user_id: uuid.UUID, **attributes: Any) -> Carrier:
        """Create an empty (or pre-filled) carrier profile for ``user_id``."""
        carrier = Carrier(user_id=user_id, **attributes)
        return await self._table.insert(carrier)

    async def update(self, user_id: uuid.UUID, patch: Mapping[str, Any]) -> Carrier:
        """
        Partially update the carrier profile owned by ``user_id``.

        Fields absent from ``patch`` keep their stored values.

        Raises:
            NotFoundError: If the user has no carrier profile.
        """
        carrier = await self.find_by_owning_user(user_id)
        if carrier is None:
            raise NotFoundError(Resource.CARRIER, user_id, by_owner=True)

        changed = apply_patch(carrier, patch, self.UPDATABLE_FIELDS)
        await self._table.save(carrier)
        logger.debug(
            "carrier_mapper.update",
            user_id=str(user_id),
            fields=sorted(changed),
        )
        return carrier

    async def delete_by_owning_user(self, user_id: uuid.UUID) -> None:
        carrier = await self.find_by_owning_user(user_id)
        if carrier is None:
            raise NotFoundError(Resource.CARRIER, user_id, by_owner=True)
        await self._table.delete(carrier)
        logger.info("carrier_deleted", user_id=str(user_id))
