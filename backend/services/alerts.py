# backend/services/alerts.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from models.alert import AlertType, StockAlert
from repositories.alerts import StockAlertRepository
from repositories.products import ProductRepository
from schemas.alert import StockAlertCreate
from services.results import NotFoundError, OperationResult, require_user, service_operation, success
from utils.audit import write_log
from utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class AlertService:
    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.alerts = StockAlertRepository(db)
        self.products = ProductRepository(db)

    def check_and_create_alerts(
        self, user_id: int, product_id: int, current_qty: int, low_stock_threshold: Optional[int]
    ) -> Optional[StockAlert]:
        """
        Raises a stock-level alert for a product whose quantity just changed.

        Runs inside the caller's transaction and never commits. Alerts are not
        deduplicated: every qualifying change produces a new row.
        """
        if current_qty == 0:
            alert_type, message = AlertType.OUT_OF_STOCK, "Product is out of stock"
        elif low_stock_threshold is not None and current_qty <= low_stock_threshold:
            alert_type, message = AlertType.LOW_STOCK, f"Product stock is low ({current_qty} remaining)"
        else:
            return None

        alert = self.alerts.create(
            user_id=user_id,
            product_id=product_id,
            type=alert_type,
            message=message,
            threshold=low_stock_threshold,
            current_value=current_qty,
            created_at=self.clock(),
        )
        logger.info("Raised %s alert for product %s (qty=%s)", alert_type.value, product_id, current_qty)
        return alert

    def _get_owned(self, user_id: int, alert_id: int) -> StockAlert:
        alert = self.alerts.find_by_id(alert_id, user_id)
        if not alert:
            raise NotFoundError("Alert not found or access denied.", {"alert_id": [f"Alert {alert_id} not found"]})
        return alert

    # Manual alert, e.g. damaged goods reported on the floor
    @service_operation("Failed to create alert.")
    def create_alert(self, user_id: int, data: StockAlertCreate) -> OperationResult:
        require_user(user_id)
        if not self.products.find_by_id(data.product_id, user_id):
            raise NotFoundError("Product not found or access denied.", {"product_id": ["Product not found"]})

        alert = self.alerts.create(
            user_id=user_id,
            created_at=self.clock(),
            **data.model_dump(),
        )
        self.db.commit()
        write_log(self.db, user_id=user_id, action="CREATE", resource="alerts", entity_id=alert.id,
                  meta={"type": alert.type.value, "product_id": alert.product_id})
        return success("Alert created successfully.", alert)

    @service_operation("Failed to acknowledge alert.")
    def acknowledge_alert(self, user_id: int, alert_id: int, acknowledged_by: int) -> OperationResult:
        require_user(user_id)
        alert = self._get_owned(user_id, alert_id)
        # Acknowledgement happens once; repeat calls keep the first stamp
        if not alert.acknowledged:
            self.alerts.acknowledge(alert, acknowledged_by, self.clock())
            self.db.commit()
            write_log(self.db, user_id=user_id, action="ACKNOWLEDGE", resource="alerts", entity_id=alert_id)
        return success("Alert acknowledged.", alert)

    @service_operation("Failed to resolve alert.")
    def resolve_alert(self, user_id: int, alert_id: int) -> OperationResult:
        require_user(user_id)
        alert = self._get_owned(user_id, alert_id)
        if alert.resolved_at is None:
            self.alerts.resolve(alert, self.clock())
            self.db.commit()
            write_log(self.db, user_id=user_id, action="RESOLVE", resource="alerts", entity_id=alert_id)
        return success("Alert resolved.", alert)

    @service_operation("Failed to acknowledge alerts.")
    def bulk_acknowledge(self, user_id: int, alert_ids: List[int], acknowledged_by: int) -> OperationResult:
        require_user(user_id)
        wanted = set(alert_ids)
        found = self.alerts.find_by_ids(list(wanted), user_id)
        missing = sorted(wanted - {a.id for a in found})
        if missing:
            raise NotFoundError(
                "Some alerts were not found or access denied.",
                {"alert_ids": [f"Alert {alert_id} not found" for alert_id in missing]},
            )

        now = self.clock()
        for alert in found:
            if not alert.acknowledged:
                self.alerts.acknowledge(alert, acknowledged_by, now)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="ACKNOWLEDGE", resource="alerts",
                  meta={"alert_ids": sorted(wanted)})
        return success(f"{len(found)} alerts acknowledged.", found)

    @service_operation("Failed to delete alert.")
    def delete_alert(self, user_id: int, alert_id: int) -> OperationResult:
        require_user(user_id)
        alert = self._get_owned(user_id, alert_id)
        self.alerts.delete(alert)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="DELETE", resource="alerts", entity_id=alert_id)
        return success("Alert deleted.")

    @service_operation("Failed to fetch alert.")
    def get_alert(self, user_id: int, alert_id: int) -> OperationResult:
        require_user(user_id)
        return success("Alert retrieved.", self._get_owned(user_id, alert_id))

    @service_operation("Failed to fetch alerts.")
    def get_user_alerts(self, user_id: int, include_acknowledged: bool = False) -> OperationResult:
        require_user(user_id)
        return success("Alerts retrieved.", self.alerts.find_by_user_id(user_id, include_acknowledged))

    @service_operation("Failed to fetch alerts.")
    def get_alerts_by_type(self, user_id: int, alert_type: AlertType) -> OperationResult:
        require_user(user_id)
        return success("Alerts retrieved.", self.alerts.find_by_type(user_id, alert_type))

    @service_operation("Failed to fetch product alerts.")
    def get_product_alerts(self, user_id: int, product_id: int) -> OperationResult:
        require_user(user_id)
        if not self.products.find_by_id(product_id, user_id):
            raise NotFoundError("Product not found or access denied.", {"product_id": ["Product not found"]})
        return success("Alerts retrieved.", self.alerts.find_by_product_id(product_id, user_id))

    @service_operation("Failed to count alerts.")
    def get_unacknowledged_count(self, user_id: int) -> OperationResult:
        require_user(user_id)
        return success("Unacknowledged alerts counted.", self.alerts.get_unacknowledged_count(user_id))
