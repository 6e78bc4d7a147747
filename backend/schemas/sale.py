# schemas/sale.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# Input schema for a single cart line
class SaleItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    price: float = Field(ge=0)
    discount: float = Field(default=0, ge=0)


# Input schema for a checkout; an empty cart is rejected by the sale service
class SaleCreate(BaseModel):
    items: List[SaleItemCreate]
    customer: Optional[str] = None
    payment_method: Optional[str] = None
    overall_discount: float = Field(default=0, ge=0)
    tax_rate: float = Field(default=0, ge=0)
    notes: Optional[str] = None


class SaleCreated(BaseModel):
    sale_id: int
    invoice_number: str


# Output schema for a receipt line
class SaleItemDetail(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: float
    discount: float
    subtotal: float
    total_price: float

    model_config = ConfigDict(from_attributes=True)


# Receipt data: sale header plus its lines
class SaleDetail(BaseModel):
    id: int
    invoice_number: str
    customer: Optional[str] = None
    payment_method: Optional[str] = None
    subtotal: float
    discount: float
    tax: float
    total_amount: float
    notes: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    items: List[SaleItemDetail]

    model_config = ConfigDict(from_attributes=True)


SalesRange = Literal["7d", "30d", "90d"]


class SalesChartPoint(BaseModel):
    date: str
    amount: float


class SalesAnalytics(BaseModel):
    total_revenue: float
    total_orders: int
    average_order_value: float
    chart_data: List[SalesChartPoint]
