# backend/routes/stats.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import List, Optional

from database import get_db
from utils.tokenJWT import get_current_user
from utils.responses import unwrap
from models.users import User
from services.analytics import InventoryAnalyticsService
import schemas.product as product_schemas

router = APIRouter(
    prefix="/stats",
    tags=["Stats"]
)

# === Pydantic Response Schemas ===

class InventoryMetrics(BaseModel):
    total_products: int
    total_quantity: int
    total_value: float
    low_stock_count: int
    out_of_stock_count: int
    average_value: float

class MovementSummary(BaseModel):
    days: int
    total_in: int
    total_out: int
    total_adjustments: int
    total_returns: int
    net_change: int

class ProductValue(BaseModel):
    id: int
    name: str
    quantity: int
    price: float
    total_value: float

# Schema for top selling products
class TopSellingProduct(BaseModel):
    product_id: int
    name: str
    units_sold: int
    revenue: float

class InventorySnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    total_products: int
    total_quantity: int
    total_value: float
    low_stock_count: int
    out_of_stock_count: int
    snapshot_date: datetime


# === Dashboard figures ===

@router.get("/metrics", response_model=InventoryMetrics)
def current_metrics(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(InventoryAnalyticsService(db).get_current_metrics(current_user.id))


@router.get("/movements", response_model=MovementSummary)
def movement_summary(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(InventoryAnalyticsService(db).get_stock_movement_summary(current_user.id, days))


@router.get("/top-products", response_model=List[ProductValue])
def top_products(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(InventoryAnalyticsService(db).get_top_products(current_user.id, limit))


@router.get("/top-selling", response_model=List[TopSellingProduct])
def top_selling(
    limit: int = Query(5, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(InventoryAnalyticsService(db).get_top_selling_products(current_user.id, limit))


@router.get("/low-stock", response_model=List[product_schemas.ProductResponse])
def low_stock(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(InventoryAnalyticsService(db).get_low_stock_products(current_user.id))


@router.get("/out-of-stock", response_model=List[product_schemas.ProductResponse])
def out_of_stock(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(InventoryAnalyticsService(db).get_out_of_stock_products(current_user.id))


# === Inventory value snapshots ===

@router.post("/snapshots", response_model=InventorySnapshot, status_code=status.HTTP_201_CREATED)
def create_snapshot(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(InventoryAnalyticsService(db).create_snapshot(current_user.id))


@router.get("/snapshots/latest", response_model=Optional[InventorySnapshot])
def latest_snapshot(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(InventoryAnalyticsService(db).get_latest_snapshot(current_user.id))


@router.get("/snapshots/trend", response_model=List[InventorySnapshot])
def value_trend(
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(InventoryAnalyticsService(db).get_value_trend(current_user.id, start, end))


@router.get("/snapshots", response_model=List[InventorySnapshot])
def snapshot_history(
    limit: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(InventoryAnalyticsService(db).get_snapshot_history(current_user.id, limit))
