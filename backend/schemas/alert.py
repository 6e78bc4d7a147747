# backend/schemas/alert.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.alert import AlertType


# Manually raised alert
class StockAlertCreate(BaseModel):
    product_id: int
    type: AlertType
    message: str = Field(min_length=1, max_length=500)
    threshold: Optional[int] = None
    current_value: Optional[int] = None


class StockAlertResponse(BaseModel):
    id: int
    product_id: int
    type: AlertType
    message: str
    threshold: Optional[int] = None
    current_value: Optional[int] = None
    acknowledged: bool
    acknowledged_by: Optional[int] = None
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BulkAcknowledge(BaseModel):
    alert_ids: List[int] = Field(min_length=1)


class UnacknowledgedCount(BaseModel):
    count: int
