"""
Shared persistence contract for the entity mappers.

Every mapper offers the same three capabilities, described by the
``EntityMapper`` protocol:

    find_by_key(key)    -> entity, or NotFoundError
    find_all(**filters) -> list of entities, oldest first
    delete_by_key(key)  -> None, or NotFoundError

Mappers do not inherit from a common base class. Each one implements the
protocol itself and composes a ``TableGateway``, which owns the injected
AsyncSession and the handful of SQLAlchemy calls the mappers share.

``apply_patch`` implements the partial-update merge used by every
``update`` operation.
"""

import uuid
from collections.abc import Mapping
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from colis.database import Base

ModelT = TypeVar("ModelT", bound=Base)
EntityT_co = TypeVar("EntityT_co", covariant=True)


@runtime_checkable
class EntityMapper(Protocol[EntityT_co]):
    """The capability set every entity mapper implements."""

    async def find_by_key(self, key: uuid.UUID) -> EntityT_co: ...

    async def find_all(self, **filters: Any) -> list[EntityT_co]: ...

    async def delete_by_key(self, key: uuid.UUID) -> None: ...


class TableGateway(Generic[ModelT]):
    """
    Row access for one ORM model through an injected session.

    All writes are flushed immediately so the caller sees constraint
    violations at the call site; committing is left to the request scope.
    """

    def __init__(self, session: AsyncSession, model: type[ModelT]) -> None:
        self.session = session
        self.model = model

    async def get(self, key: uuid.UUID) -> ModelT | None:
        return await self.session.get(self.model, key)

    async def first_where(self, *criteria: Any, join: Any = None) -> ModelT | None:
        """First row matching ``criteria``; ``join`` names a relationship to join on."""
        statement = select(self.model)
        if join is not None:
            statement = statement.join(join)
        result = await self.session.execute(statement.where(*criteria))
        return result.scalar_one_or_none()

    async def select_where(self, *criteria: Any) -> list[ModelT]:
        """Rows matching ``criteria``, ordered by creation time then id."""
        result = await self.session.execute(
            select(self.model)
            .where(*criteria)
            .order_by(self.model.created_at, self.model.id)
        )
        return list(result.scalars().all())

    async def insert(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def save(self, entity: ModelT) -> ModelT:
        await self.session.flush()
        return entity

    async def delete(self, entity: ModelT) -> None:
        await self.session.delete(entity)
        await self.session.flush()


def apply_patch(entity: Any, patch: Mapping[str, Any], fields: frozenset[str]) -> set[str]:
    """
    Merge ``patch`` onto ``entity`` in place and return the changed field names.

    Only keys present in the patch are written. A key whose value is None
    is treated like an omitted key, so a patch can never blank a stored
    value.

    Raises:
        ValueError: If the patch names a field outside ``fields``.
    """
    unknown = set(patch) - fields
    if unknown:
        raise ValueError(f"Fields not updatable: {', '.join(sorted(unknown))}")

    changed = set()
    for field, value in patch.items():
        if value is None:
            continue
        if getattr(entity, field) != value:
            setattr(entity, field, value)
            changed.add(field)
    return changed
