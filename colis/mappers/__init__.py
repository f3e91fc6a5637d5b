"""
Entity mappers: translate between persisted rows and domain entities.

Each mapper is constructed per request with the request's AsyncSession.
"""

from colis.mappers.base import EntityMapper, TableGateway, apply_patch  # noqa: F401
from colis.mappers.user_mapper import UserMapper  # noqa: F401
from colis.mappers.account_mapper import AccountMapper  # noqa: F401
from colis.mappers.carrier_mapper import CarrierMapper  # noqa: F401
