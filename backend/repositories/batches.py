# backend/repositories/batches.py
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from models.batch import Batch


class BatchRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields) -> Batch:
        batch = Batch(**fields)
        self.db.add(batch)
        self.db.flush()
        return batch

    def find_by_id(self, batch_id: int, user_id: int) -> Optional[Batch]:
        return (
            self.db.query(Batch)
            .filter(Batch.id == batch_id, Batch.user_id == user_id)
            .first()
        )

    def find_by_product_id(self, product_id: int, user_id: int) -> List[Batch]:
        return (
            self.db.query(Batch)
            .filter(Batch.product_id == product_id, Batch.user_id == user_id)
            .order_by(Batch.received_at.desc())
            .all()
        )

    # Batches expiring between now and now + days, soonest first
    def find_expiring(self, user_id: int, now: datetime, days: int) -> List[Batch]:
        return (
            self.db.query(Batch)
            .filter(
                Batch.user_id == user_id,
                Batch.expires_at.isnot(None),
                Batch.expires_at >= now,
                Batch.expires_at <= now + timedelta(days=days),
            )
            .order_by(Batch.expires_at.asc())
            .all()
        )

    def find_expired(self, user_id: int, now: datetime) -> List[Batch]:
        return (
            self.db.query(Batch)
            .filter(
                Batch.user_id == user_id,
                Batch.expires_at.isnot(None),
                Batch.expires_at < now,
            )
            .order_by(Batch.expires_at.desc())
            .all()
        )

    def update(self, batch: Batch, **fields) -> Batch:
        for key, value in fields.items():
            setattr(batch, key, value)
        self.db.flush()
        return batch

    def delete(self, batch: Batch) -> None:
        self.db.delete(batch)
        self.db.flush()
