# backend/repositories/alerts.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from models.alert import AlertType, StockAlert


class StockAlertRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields) -> StockAlert:
        fields.setdefault("acknowledged", False)
        alert = StockAlert(**fields)
        self.db.add(alert)
        self.db.flush()
        return alert

    def find_by_id(self, alert_id: int, user_id: int) -> Optional[StockAlert]:
        return (
            self.db.query(StockAlert)
            .filter(StockAlert.id == alert_id, StockAlert.user_id == user_id)
            .first()
        )

    def find_by_ids(self, alert_ids: List[int], user_id: int) -> List[StockAlert]:
        return (
            self.db.query(StockAlert)
            .filter(StockAlert.id.in_(alert_ids), StockAlert.user_id == user_id)
            .all()
        )

    def find_by_user_id(self, user_id: int, include_acknowledged: bool = False) -> List[StockAlert]:
        query = self.db.query(StockAlert).filter(StockAlert.user_id == user_id)
        if not include_acknowledged:
            query = query.filter(StockAlert.acknowledged.is_(False))
        return query.order_by(StockAlert.created_at.desc(), StockAlert.id.desc()).all()

    def find_by_type(self, user_id: int, alert_type: AlertType) -> List[StockAlert]:
        return (
            self.db.query(StockAlert)
            .filter(StockAlert.user_id == user_id, StockAlert.type == alert_type)
            .order_by(StockAlert.created_at.desc(), StockAlert.id.desc())
            .all()
        )

    def find_by_product_id(self, product_id: int, user_id: int) -> List[StockAlert]:
        return (
            self.db.query(StockAlert)
            .filter(StockAlert.product_id == product_id, StockAlert.user_id == user_id)
            .order_by(StockAlert.created_at.desc(), StockAlert.id.desc())
            .all()
        )

    def acknowledge(self, alert: StockAlert, acknowledged_by: int, at: datetime) -> StockAlert:
        alert.acknowledged = True
        alert.acknowledged_by = acknowledged_by
        alert.acknowledged_at = at
        self.db.flush()
        return alert

    def resolve(self, alert: StockAlert, at: datetime) -> StockAlert:
        alert.resolved_at = at
        self.db.flush()
        return alert

    def delete(self, alert: StockAlert) -> None:
        self.db.delete(alert)
        self.db.flush()

    def get_unacknowledged_count(self, user_id: int) -> int:
        return (
            self.db.query(StockAlert)
            .filter(StockAlert.user_id == user_id, StockAlert.acknowledged.is_(False))
            .count()
        )
