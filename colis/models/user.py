"""
User model: the identity record.

A User is the login identity (email + hashed password), the role that
drives authorization, and the personal profile a parcel sender or carrier
fills in at registration.

Each user owns exactly one Account (the scoped credentials surface) and,
when the role is CARRIER, exactly one Carrier profile.

Users are never purged. Deleting a user clears ``is_active`` so that
delivery history pointing at the user stays intact; inactive users cannot
log in and are invisible to lookups.
"""

import enum
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Boolean, Date, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from colis.database import Base


class UserRole(str, enum.Enum):
    """
    Role held by a user on the platform.

    Inherits from str so the value serializes naturally to JSON and into
    the token's "role" claim.
    """
    CUSTOMER = "customer"   # Sends parcels
    CARRIER = "carrier"     # Delivers parcels, has a Carrier profile
    ADMIN = "admin"         # Platform operator, may act on any user


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Login identifier, unique and indexed
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    # Argon2id hash (never the plaintext)
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    comp_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    zipcode: Mapped[str] = mapped_column(String(20), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole),
        default=UserRole.CUSTOMER,
        nullable=False,
    )

    # Set by an admin once identity documents have been checked
    identity_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Soft delete flag
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    account: Mapped["Account"] = relationship(
        back_populates="user",
        uselist=False,
    )
    carrier: Mapped["Carrier"] = relationship(
        back_populates="user",
        uselist=False,
    )
