"""
Pydantic schemas for registration and login.

Pydantic validates incoming data before any route code runs; a missing or
malformed field yields a 422 validation_failure response.
"""

import uuid
from datetime import date

from pydantic import BaseModel, EmailStr, Field


class UserRegisterRequest(BaseModel):
    """Request body for POST /users/register."""
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    address: str = Field(min_length=1, max_length=255)
    comp_address: str | None = Field(None, max_length=255)
    zipcode: str = Field(min_length=1, max_length=20)
    city: str = Field(min_length=1, max_length=100)
    birth_date: date | None = None
    phone_number: str = Field(min_length=1, max_length=20)
    # Registers a delivery carrier: role CARRIER plus an empty carrier profile
    carrier: bool = False


class UserLoginRequest(BaseModel):
    """Request body for POST /users/login."""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Response body for a successful login."""
    token: str
    token_type: str = "bearer"
    user_id: uuid.UUID
    role: str
