# backend/services/analytics.py
import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from models.stock import MovementType
from repositories.inventory_values import InventoryValueRepository
from repositories.products import ProductRepository
from repositories.sales import SaleRepository
from repositories.stock_movements import StockMovementRepository
from services.results import OperationResult, ValidationFailed, require_user, service_operation, success
from utils.audit import write_log
from utils.clock import Clock, as_naive_utc, utcnow

logger = logging.getLogger(__name__)


# Read-only dashboard figures; snapshots are the only writes
class InventoryAnalyticsService:
    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.snapshots = InventoryValueRepository(db)
        self.products = ProductRepository(db)
        self.movements = StockMovementRepository(db)
        self.sales = SaleRepository(db)

    @service_operation("Failed to create inventory snapshot.")
    def create_snapshot(self, user_id: int) -> OperationResult:
        require_user(user_id)
        current = self.snapshots.calculate_current(user_id)
        snapshot = self.snapshots.create(user_id=user_id, snapshot_date=self.clock(), **current)
        self.db.commit()
        logger.info("Inventory snapshot %s for user %s: value %.2f", snapshot.id, user_id, snapshot.total_value)
        write_log(self.db, user_id=user_id, action="SNAPSHOT", resource="stats", entity_id=snapshot.id)
        return success("Inventory snapshot created.", snapshot)

    @service_operation("Failed to fetch inventory snapshot.")
    def get_latest_snapshot(self, user_id: int) -> OperationResult:
        require_user(user_id)
        return success("Latest snapshot retrieved.", self.snapshots.find_latest(user_id))

    @service_operation("Failed to fetch snapshot history.")
    def get_snapshot_history(self, user_id: int, limit: int = 30) -> OperationResult:
        require_user(user_id)
        return success("Snapshot history retrieved.", self.snapshots.find_by_user_id(user_id, limit))

    @service_operation("Failed to fetch inventory value trend.")
    def get_value_trend(self, user_id: int, start: datetime, end: datetime) -> OperationResult:
        require_user(user_id)
        start, end = as_naive_utc(start), as_naive_utc(end)
        if start > end:
            raise ValidationFailed("Start date must be before end date.", {"start": ["Must be before end"]})
        return success("Value trend retrieved.", self.snapshots.find_by_date_range(user_id, start, end))

    @service_operation("Failed to calculate inventory metrics.")
    def get_current_metrics(self, user_id: int) -> OperationResult:
        require_user(user_id)
        metrics = self.snapshots.calculate_current(user_id)
        count = metrics["total_products"]
        metrics["average_value"] = metrics["total_value"] / count if count else 0.0
        return success("Inventory metrics calculated.", metrics)

    @service_operation("Failed to summarise stock movements.")
    def get_stock_movement_summary(self, user_id: int, days: int = 30) -> OperationResult:
        require_user(user_id)
        if days <= 0:
            raise ValidationFailed("Days must be greater than zero.", {"days": ["Must be greater than 0"]})

        end = self.clock()
        totals = self.movements.get_totals_by_type(user_id, end - timedelta(days=days), end)
        # Adjustment magnitudes count as inflow, matching how they are summed on the dashboard
        net_change = (
            totals[MovementType.IN]
            + totals[MovementType.RETURN]
            - totals[MovementType.OUT]
            + totals[MovementType.ADJUSTMENT]
        )
        return success(
            "Stock movement summary calculated.",
            {
                "days": days,
                "total_in": totals[MovementType.IN],
                "total_out": totals[MovementType.OUT],
                "total_adjustments": totals[MovementType.ADJUSTMENT],
                "total_returns": totals[MovementType.RETURN],
                "net_change": net_change,
            },
        )

    @service_operation("Failed to fetch top products.")
    def get_top_products(self, user_id: int, limit: int = 10) -> OperationResult:
        require_user(user_id)
        products = self.products.find_top_by_value(user_id, limit)
        return success(
            "Top products retrieved.",
            [
                {
                    "id": p.id,
                    "name": p.name,
                    "quantity": p.quantity,
                    "price": p.price,
                    "total_value": p.quantity * p.price,
                }
                for p in products
            ],
        )

    @service_operation("Failed to fetch low stock products.")
    def get_low_stock_products(self, user_id: int) -> OperationResult:
        require_user(user_id)
        return success("Low stock products retrieved.", self.products.find_low_stock(user_id))

    @service_operation("Failed to fetch out of stock products.")
    def get_out_of_stock_products(self, user_id: int) -> OperationResult:
        require_user(user_id)
        return success("Out of stock products retrieved.", self.products.find_out_of_stock(user_id))

    @service_operation("Failed to fetch top selling products.")
    def get_top_selling_products(self, user_id: int, limit: int = 5) -> OperationResult:
        require_user(user_id)
        rows = self.sales.top_selling(user_id, limit)
        return success(
            "Top selling products retrieved.",
            [
                {"product_id": pid, "name": name, "units_sold": int(units or 0), "revenue": float(revenue or 0)}
                for pid, name, units, revenue in rows
            ],
        )
