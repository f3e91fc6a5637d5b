"""
SQLAlchemy ORM models package.

All models are imported here so that Base.metadata knows every table
before create_all() runs, and other modules can import from colis.models.
"""

from colis.models.user import User, UserRole  # noqa: F401
from colis.models.account import Account  # noqa: F401
from colis.models.carrier import Carrier  # noqa: F401
