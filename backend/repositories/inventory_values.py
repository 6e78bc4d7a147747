# backend/repositories/inventory_values.py
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from models.inventory_value import InventoryValue
from models.product import Product


class InventoryValueRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields) -> InventoryValue:
        snapshot = InventoryValue(**fields)
        self.db.add(snapshot)
        self.db.flush()
        return snapshot

    def find_by_user_id(self, user_id: int, limit: int = 30) -> List[InventoryValue]:
        return (
            self.db.query(InventoryValue)
            .filter(InventoryValue.user_id == user_id)
            .order_by(InventoryValue.snapshot_date.desc(), InventoryValue.id.desc())
            .limit(limit)
            .all()
        )

    def find_latest(self, user_id: int) -> Optional[InventoryValue]:
        return (
            self.db.query(InventoryValue)
            .filter(InventoryValue.user_id == user_id)
            .order_by(InventoryValue.snapshot_date.desc(), InventoryValue.id.desc())
            .first()
        )

    def find_by_date_range(self, user_id: int, start: datetime, end: datetime) -> List[InventoryValue]:
        return (
            self.db.query(InventoryValue)
            .filter(
                InventoryValue.user_id == user_id,
                InventoryValue.snapshot_date >= start,
                InventoryValue.snapshot_date <= end,
            )
            .order_by(InventoryValue.snapshot_date.asc())
            .all()
        )

    # Current totals computed straight from the products table
    def calculate_current(self, user_id: int) -> Dict[str, float]:
        total_products, total_quantity, total_value = (
            self.db.query(
                func.count(Product.id),
                func.coalesce(func.sum(Product.quantity), 0),
                func.coalesce(func.sum(Product.quantity * Product.price), 0.0),
            )
            .filter(Product.user_id == user_id)
            .one()
        )

        low_stock_count = (
            self.db.query(Product)
            .filter(
                Product.user_id == user_id,
                and_(Product.low_stock_at.isnot(None), Product.quantity <= Product.low_stock_at),
            )
            .count()
        )
        out_of_stock_count = (
            self.db.query(Product)
            .filter(Product.user_id == user_id, Product.quantity == 0)
            .count()
        )

        return {
            "total_products": int(total_products or 0),
            "total_quantity": int(total_quantity or 0),
            "total_value": float(total_value or 0.0),
            "low_stock_count": low_stock_count,
            "out_of_stock_count": out_of_stock_count,
        }
