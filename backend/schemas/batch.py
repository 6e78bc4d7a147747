# backend/schemas/batch.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BatchCreate(BaseModel):
    product_id: int
    batch_number: str = Field(min_length=1, max_length=100)
    quantity: int = Field(ge=1)
    manufactured_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    received_at: Optional[datetime] = None # defaults to now
    notes: Optional[str] = Field(default=None, max_length=5000)


class BatchUpdate(BaseModel):
    batch_number: Optional[str] = Field(default=None, min_length=1, max_length=100)
    quantity: Optional[int] = Field(default=None, ge=1)
    manufactured_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    received_at: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=5000)


class BatchResponse(BaseModel):
    id: int
    product_id: int
    batch_number: str
    quantity: int
    manufactured_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    received_at: datetime
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# Result of an on-demand expiry sweep
class ExpirySweepResult(BaseModel):
    expiring_soon: int
    expired: int
