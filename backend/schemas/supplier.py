# backend/schemas/supplier.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SupplierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    contact_person: Optional[str] = Field(default=None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=1000)
    website: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
    active: bool = True


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    contact_person: Optional[str] = Field(default=None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=1000)
    website: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
    active: Optional[bool] = None


class SupplierResponse(BaseModel):
    id: int
    name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductSupplierLink(BaseModel):
    product_id: int
    supplier_id: int
    supplier_sku: Optional[str] = Field(default=None, max_length=100)
    cost_price: float = Field(ge=0)
    lead_time_days: Optional[int] = Field(default=None, ge=0)
    min_order_qty: Optional[int] = Field(default=None, ge=1)
    is_primary: bool = False


class ProductSupplierUpdate(BaseModel):
    supplier_sku: Optional[str] = Field(default=None, max_length=100)
    cost_price: Optional[float] = Field(default=None, ge=0)
    lead_time_days: Optional[int] = Field(default=None, ge=0)
    min_order_qty: Optional[int] = Field(default=None, ge=1)
    is_primary: Optional[bool] = None


class ProductSupplierResponse(BaseModel):
    id: int
    product_id: int
    supplier_id: int
    supplier_sku: Optional[str] = None
    cost_price: float
    lead_time_days: Optional[int] = None
    min_order_qty: Optional[int] = None
    is_primary: bool

    model_config = ConfigDict(from_attributes=True)
