# backend/repositories/stock_movements.py
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.stock import MovementType, StockMovement


class StockMovementRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields) -> StockMovement:
        movement = StockMovement(**fields)
        self.db.add(movement)
        self.db.flush()
        return movement

    def find_by_id(self, movement_id: int, user_id: int) -> Optional[StockMovement]:
        return (
            self.db.query(StockMovement)
            .filter(StockMovement.id == movement_id, StockMovement.user_id == user_id)
            .first()
        )

    def find_by_user_id(self, user_id: int, limit: int = 100) -> List[StockMovement]:
        return (
            self.db.query(StockMovement)
            .filter(StockMovement.user_id == user_id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
            .all()
        )

    def find_by_product_id(self, product_id: int, user_id: int, limit: int = 50) -> List[StockMovement]:
        return (
            self.db.query(StockMovement)
            .filter(StockMovement.product_id == product_id, StockMovement.user_id == user_id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
            .all()
        )

    def find_by_type(self, user_id: int, movement_type: MovementType, limit: int = 100) -> List[StockMovement]:
        return (
            self.db.query(StockMovement)
            .filter(StockMovement.user_id == user_id, StockMovement.type == movement_type)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
            .all()
        )

    def find_by_date_range(self, user_id: int, start: datetime, end: datetime) -> List[StockMovement]:
        return (
            self.db.query(StockMovement)
            .filter(
                StockMovement.user_id == user_id,
                StockMovement.created_at >= start,
                StockMovement.created_at <= end,
            )
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .all()
        )

    # Sum of ledger quantities per movement type, every type present (zero-filled)
    def get_totals_by_type(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[MovementType, int]:
        query = (
            self.db.query(StockMovement.type, func.coalesce(func.sum(StockMovement.quantity), 0))
            .filter(StockMovement.user_id == user_id)
        )
        if start is not None and end is not None:
            query = query.filter(StockMovement.created_at >= start, StockMovement.created_at <= end)

        totals = {movement_type: 0 for movement_type in MovementType}
        for movement_type, total in query.group_by(StockMovement.type).all():
            totals[MovementType(movement_type)] = int(total or 0)
        return totals

    def delete(self, movement: StockMovement) -> None:
        self.db.delete(movement)
        self.db.flush()
