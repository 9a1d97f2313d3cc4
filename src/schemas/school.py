from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict


class SchoolResponse(BaseModel):
    """A stored school as shown on the listing grid."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: str
    city: str
    state: str
    contact: str
    email_id: str
    image: str | None = None
    created_at: datetime.datetime | None = None


class SchoolListResponse(BaseModel):
    success: bool = True
    data: list[SchoolResponse] = []


class SchoolCreatedResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    success: bool = False
    error: str
    code: str
    hint: str | None = None
