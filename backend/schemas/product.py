# backend/schemas/product.py
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List

from models.product import ProductCondition


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)


class TagResponse(ORMBase):
    id: int
    name: str


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1, max_length=200)
    manufacturer: str = Field(min_length=1, max_length=200)
    model: Optional[str] = None
    sku: Optional[str] = None
    low_stock_at: Optional[int] = Field(default=None, ge=0)
    condition: ProductCondition = ProductCondition.NEW
    location: Optional[str] = None
    price: float = Field(default=0, ge=0)
    category_id: Optional[int] = None
    specs: Optional[str] = None
    compatibility: Optional[str] = None
    supplier: Optional[str] = None
    warranty_months: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    image_url: Optional[str] = None


# Schema for creating a new product; the initial quantity is booked as an IN movement
class ProductCreate(ProductBase):
    quantity: int = Field(default=0, ge=0)
    tag_ids: List[int] = Field(default_factory=list)


# Schema for partial product updates - quantity is not editable here
class ProductUpdate(ORMBase):
    """Schema for PATCH requests - all fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    manufacturer: Optional[str] = Field(None, min_length=1, max_length=200)
    model: Optional[str] = None
    sku: Optional[str] = None
    low_stock_at: Optional[int] = Field(None, ge=0)
    condition: Optional[ProductCondition] = None
    location: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category_id: Optional[int] = None
    specs: Optional[str] = None
    compatibility: Optional[str] = None
    supplier: Optional[str] = None
    warranty_months: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    image_url: Optional[str] = None
    # Replaces the whole tag set when given
    tag_ids: Optional[List[int]] = None


# Full product representation including ID and on-hand quantity
class ProductResponse(ProductBase):
    id: int
    quantity: int
    tags: List[TagResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductResponse]
    total: int
    page: int
    page_size: int


# Signed delta for the quick +/- stock control
class StockDelta(BaseModel):
    adjustment: int


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryResponse(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
