"""Pydantic schemas for the account sub-resource."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class AccountResponse(BaseModel):
    """Public representation of an Account (no password hash)."""
    id: uuid.UUID
    user_id: uuid.UUID
    username: str
    email: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AccountUpdateRequest(BaseModel):
    """Request body for PUT /users/{user_id}/account (partial update)."""
    username: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8)
