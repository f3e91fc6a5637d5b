"""
Pydantic schemas for User responses and profile updates.

hashed_password is NEVER part of a response schema.
"""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from colis.models.user import UserRole


class UserResponse(BaseModel):
    """Public representation of a User."""
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    address: str
    comp_address: str | None
    zipcode: str
    city: str
    birth_date: date | None
    phone_number: str
    role: UserRole
    identity_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserUpdateRequest(BaseModel):
    """Request body for PATCH /users/{user_id} (all fields optional)."""
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    address: str | None = Field(None, min_length=1, max_length=255)
    comp_address: str | None = Field(None, max_length=255)
    zipcode: str | None = Field(None, min_length=1, max_length=20)
    city: str | None = Field(None, min_length=1, max_length=100)
    birth_date: date | None = None
    phone_number: str | None = Field(None, min_length=1, max_length=20)
