# backend/schemas/stock.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Dict, List, Optional

from models.stock import MovementType


# Base schema for stock movement data
class StockMovementBase(BaseModel):
    product_id: int
    type: MovementType
    # IN/OUT/RETURN: amount moved. ADJUSTMENT: absolute target quantity.
    quantity: int = Field(ge=0)
    supplier_id: Optional[int] = None
    batch_id: Optional[int] = None
    unit_cost: Optional[float] = Field(default=None, ge=0)
    reference: Optional[str] = Field(default=None, max_length=200)
    reason: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=5000)


# Schema for creating a new stock movement
class StockMovementCreate(StockMovementBase):
    pass


# Set a product to an exact counted quantity
class StockAdjustment(BaseModel):
    product_id: int
    new_quantity: int = Field(ge=0)
    reason: str = Field(min_length=1, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=5000)


# Several movements applied all-or-nothing (e.g. a delivery)
class BulkStockMovement(BaseModel):
    movements: List[StockMovementCreate] = Field(min_length=1)


# Schema for returning stock movement details
class StockMovementResponse(BaseModel):
    id: int
    product_id: int
    supplier_id: Optional[int] = None
    batch_id: Optional[int] = None
    type: MovementType
    quantity: int
    previous_qty: int
    new_qty: int
    unit_cost: Optional[float] = None
    total_cost: Optional[float] = None
    reference: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    performed_by: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MovementTotals(BaseModel):
    totals: Dict[MovementType, int]
