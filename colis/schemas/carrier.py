"""Pydantic schemas for the carrier sub-resource."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CarrierResponse(BaseModel):
    """Public representation of a Carrier profile."""
    id: uuid.UUID
    user_id: uuid.UUID
    vehicle_type: str | None
    license_plate: str | None
    coverage_area: str | None
    capacity_kg: int | None
    is_available: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CarrierUpdateRequest(BaseModel):
    """Request body for PUT /users/{user_id}/carrier (partial update)."""
    vehicle_type: str | None = Field(None, min_length=1, max_length=50)
    license_plate: str | None = Field(None, min_length=1, max_length=20)
    coverage_area: str | None = Field(None, min_length=1, max_length=255)
    capacity_kg: int | None = Field(None, gt=0)
    is_available: bool | None = None
