# backend/services/batches.py
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from config import settings
from models.alert import AlertType, StockAlert
from models.batch import Batch
from repositories.alerts import StockAlertRepository
from repositories.batches import BatchRepository
from repositories.products import ProductRepository
from schemas.batch import BatchCreate, BatchUpdate
from services.results import NotFoundError, OperationResult, ValidationFailed, require_user, service_operation, success
from utils.audit import write_log
from utils.clock import Clock, as_naive_utc, utcnow

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def days_until_expiry(expires_at: datetime, now: datetime) -> int:
    # Whole days, rounded down; negative once the batch is past expiry
    return (expires_at - now) // ONE_DAY


def _validate_dates(manufactured_at: Optional[datetime], expires_at: Optional[datetime]) -> None:
    if manufactured_at is not None and expires_at is not None and expires_at <= manufactured_at:
        raise ValidationFailed(
            "Expiry date must be after manufacture date.",
            {"expires_at": ["Expiry date must be after manufacture date"]},
        )


class BatchService:
    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.batches = BatchRepository(db)
        self.products = ProductRepository(db)
        self.alerts = StockAlertRepository(db)

    def _get_owned(self, user_id: int, batch_id: int) -> Batch:
        batch = self.batches.find_by_id(batch_id, user_id)
        if not batch:
            raise NotFoundError("Batch not found or access denied.", {"batch_id": [f"Batch {batch_id} not found"]})
        return batch

    def _expiring_alert(self, user_id: int, batch: Batch, days: int) -> StockAlert:
        return self.alerts.create(
            user_id=user_id,
            product_id=batch.product_id,
            type=AlertType.EXPIRING_SOON,
            message=f"Batch {batch.batch_number} expires in {days} days",
            threshold=None,
            current_value=days,
            created_at=self.clock(),
        )

    def _expired_alert(self, user_id: int, batch: Batch) -> StockAlert:
        return self.alerts.create(
            user_id=user_id,
            product_id=batch.product_id,
            type=AlertType.EXPIRED,
            message=f"Batch {batch.batch_number} has expired",
            threshold=None,
            current_value=0,
            created_at=self.clock(),
        )

    @service_operation("Failed to create batch.")
    def create_batch(self, user_id: int, data: BatchCreate) -> OperationResult:
        require_user(user_id)
        if not self.products.find_by_id(data.product_id, user_id):
            raise NotFoundError("Product not found or access denied.", {"product_id": ["Product not found"]})

        manufactured_at = as_naive_utc(data.manufactured_at)
        expires_at = as_naive_utc(data.expires_at)
        _validate_dates(manufactured_at, expires_at)

        now = self.clock()
        batch = self.batches.create(
            user_id=user_id,
            product_id=data.product_id,
            batch_number=data.batch_number,
            quantity=data.quantity,
            manufactured_at=manufactured_at,
            expires_at=expires_at,
            received_at=as_naive_utc(data.received_at) or now,
            notes=data.notes,
        )

        if expires_at is not None:
            days = days_until_expiry(expires_at, now)
            if 0 < days <= settings.EXPIRY_WARNING_DAYS:
                self._expiring_alert(user_id, batch, days)
            elif days <= 0:
                self._expired_alert(user_id, batch)

        self.db.commit()
        logger.info("Created batch %s for product %s", batch.batch_number, batch.product_id)
        write_log(self.db, user_id=user_id, action="CREATE", resource="batches", entity_id=batch.id,
                  meta={"batch_number": batch.batch_number, "product_id": batch.product_id})
        return success("Batch created successfully.", batch)

    @service_operation("Failed to check batch expiry.")
    def check_expiring_batches(self, user_id: int) -> OperationResult:
        """
        Sweeps every batch of the user and raises expiry alerts.

        Alerts are not deduplicated, so running the sweep twice raises them twice.
        """
        require_user(user_id)
        now = self.clock()
        candidates = self.batches.find_expired(user_id, now) + self.batches.find_expiring(
            user_id, now, settings.EXPIRY_WARNING_DAYS
        )

        # Same day rule as create_batch: less than a whole day left counts as expired
        expiring, expired = [], []
        for batch in candidates:
            days = days_until_expiry(batch.expires_at, now)
            if days > 0:
                self._expiring_alert(user_id, batch, days)
                expiring.append(batch)
            else:
                self._expired_alert(user_id, batch)
                expired.append(batch)

        self.db.commit()
        logger.info("Expiry sweep for user %s: %s expiring, %s expired", user_id, len(expiring), len(expired))
        return success(
            "Batch expiry check completed.",
            {"expiring_soon": len(expiring), "expired": len(expired)},
        )

    @service_operation("Failed to fetch batch.")
    def get_batch(self, user_id: int, batch_id: int) -> OperationResult:
        require_user(user_id)
        return success("Batch retrieved.", self._get_owned(user_id, batch_id))

    @service_operation("Failed to fetch product batches.")
    def get_product_batches(self, user_id: int, product_id: int) -> OperationResult:
        require_user(user_id)
        if not self.products.find_by_id(product_id, user_id):
            raise NotFoundError("Product not found or access denied.", {"product_id": ["Product not found"]})
        return success("Batches retrieved.", self.batches.find_by_product_id(product_id, user_id))

    @service_operation("Failed to fetch expiring batches.")
    def get_expiring_batches(self, user_id: int, days: Optional[int] = None) -> OperationResult:
        require_user(user_id)
        if days is None:
            days = settings.EXPIRY_WARNING_DAYS
        if days < 0:
            raise ValidationFailed("Days must be 0 or greater.", {"days": ["Must be 0 or greater"]})
        return success("Expiring batches retrieved.", self.batches.find_expiring(user_id, self.clock(), days))

    @service_operation("Failed to fetch expired batches.")
    def get_expired_batches(self, user_id: int) -> OperationResult:
        require_user(user_id)
        return success("Expired batches retrieved.", self.batches.find_expired(user_id, self.clock()))

    @service_operation("Failed to update batch.")
    def update_batch(self, user_id: int, batch_id: int, data: BatchUpdate) -> OperationResult:
        require_user(user_id)
        batch = self._get_owned(user_id, batch_id)

        changes = data.model_dump(exclude_unset=True)
        for key in ("manufactured_at", "expires_at", "received_at"):
            if key in changes:
                changes[key] = as_naive_utc(changes[key])
        if "received_at" in changes and changes["received_at"] is None:
            del changes["received_at"]

        # Validate the date pair as it will be stored
        _validate_dates(
            changes.get("manufactured_at", batch.manufactured_at),
            changes.get("expires_at", batch.expires_at),
        )

        self.batches.update(batch, **changes)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="UPDATE", resource="batches", entity_id=batch_id,
                  meta={"fields": sorted(changes)})
        return success("Batch updated successfully.", batch)

    @service_operation("Failed to delete batch.")
    def delete_batch(self, user_id: int, batch_id: int) -> OperationResult:
        require_user(user_id)
        batch = self._get_owned(user_id, batch_id)
        self.batches.delete(batch)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="DELETE", resource="batches", entity_id=batch_id)
        return success("Batch deleted.")
