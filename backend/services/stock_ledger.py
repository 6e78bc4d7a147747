# backend/services/stock_ledger.py
import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from models.product import Product
from models.stock import MovementType, StockMovement
from repositories.batches import BatchRepository
from repositories.products import ProductRepository
from repositories.stock_movements import StockMovementRepository
from repositories.suppliers import SupplierRepository
from schemas.stock import BulkStockMovement, StockAdjustment, StockMovementCreate
from services.alerts import AlertService
from services.results import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    OperationResult,
    ValidationFailed,
    require_user,
    service_operation,
    success,
)
from utils.audit import write_log
from utils.clock import Clock, as_naive_utc, utcnow

logger = logging.getLogger(__name__)

# new quantity = rule(previous quantity, requested quantity)
MOVEMENT_RULES: Dict[MovementType, Callable[[int, int], int]] = {
    MovementType.IN: lambda previous, quantity: previous + quantity,
    MovementType.RETURN: lambda previous, quantity: previous + quantity,
    MovementType.OUT: lambda previous, quantity: previous - quantity,
    # Absolute target, e.g. after a physical count
    MovementType.ADJUSTMENT: lambda previous, quantity: quantity,
}

ABSOLUTE_TYPES = {MovementType.ADJUSTMENT}


def compute_new_quantity(movement_type: MovementType, previous: int, quantity: int) -> int:
    return MOVEMENT_RULES[movement_type](previous, quantity)


def ledger_quantity(movement_type: MovementType, previous: int, new: int, quantity: int) -> int:
    if movement_type in ABSOLUTE_TYPES:
        return abs(new - previous)
    return quantity


class StockLedgerService:
    """
    Every change of a product's on-hand quantity goes through this service.

    A movement is written together with the product quantity update and the
    alert check in one transaction, so the ledger always explains the stock.
    """

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.products = ProductRepository(db)
        self.movements = StockMovementRepository(db)
        self.suppliers = SupplierRepository(db)
        self.batches = BatchRepository(db)
        self.alerts = AlertService(db, clock)

    def _get_product(self, user_id: int, product_id: int) -> Product:
        product = self.products.find_by_id(product_id, user_id)
        if not product:
            raise NotFoundError(
                "Product not found or access denied.",
                {"product_id": [f"Product {product_id} not found"]},
            )
        return product

    def _check_references(self, user_id: int, data: StockMovementCreate) -> None:
        if data.supplier_id is not None and not self.suppliers.find_by_id(data.supplier_id, user_id):
            raise NotFoundError("Supplier not found or access denied.", {"supplier_id": ["Supplier not found"]})
        if data.batch_id is not None:
            batch = self.batches.find_by_id(data.batch_id, user_id)
            if not batch or batch.product_id != data.product_id:
                raise NotFoundError("Batch not found or access denied.", {"batch_id": ["Batch not found"]})

    def _write(
        self,
        product: Product,
        user_id: int,
        performed_by: int,
        movement_type: MovementType,
        previous: int,
        new: int,
        quantity: int,
        **extra,
    ) -> StockMovement:
        movement = self.movements.create(
            user_id=user_id,
            product_id=product.id,
            type=movement_type,
            quantity=quantity,
            previous_qty=previous,
            new_qty=new,
            performed_by=performed_by,
            created_at=self.clock(),
            **extra,
        )
        # Compare-and-swap: another writer changing the product in between loses nothing
        if self.products.update_quantity(product.id, user_id, new, previous) == 0:
            raise ConflictError(
                "Stock level changed while the movement was being recorded. Please retry.",
                {"product_id": [f"Concurrent update on product {product.id}"]},
            )
        self.alerts.check_and_create_alerts(user_id, product.id, new, product.low_stock_at)
        return movement

    def apply_movement(self, user_id: int, performed_by: int, data: StockMovementCreate) -> StockMovement:
        """Validates and writes one movement inside the current transaction (no commit)."""
        if data.type not in ABSOLUTE_TYPES and data.quantity <= 0:
            raise ValidationFailed("Quantity must be greater than zero.", {"quantity": ["Must be greater than 0"]})
        if data.quantity < 0:
            raise ValidationFailed("Quantity cannot be negative.", {"quantity": ["Must be 0 or greater"]})

        product = self._get_product(user_id, data.product_id)
        self._check_references(user_id, data)

        previous = product.quantity
        new = compute_new_quantity(data.type, previous, data.quantity)
        if new < 0:
            raise InsufficientStockError(
                f"Insufficient stock for {product.name}. Available: {previous}",
                {"quantity": [f"Requested {data.quantity}, available {previous}"]},
            )

        quantity = ledger_quantity(data.type, previous, new, data.quantity)
        total_cost = data.unit_cost * quantity if data.unit_cost is not None else None
        return self._write(
            product, user_id, performed_by, data.type, previous, new, quantity,
            supplier_id=data.supplier_id,
            batch_id=data.batch_id,
            unit_cost=data.unit_cost,
            total_cost=total_cost,
            reference=data.reference,
            reason=data.reason,
            notes=data.notes,
        )

    def apply_adjustment(self, user_id: int, performed_by: int, data: StockAdjustment) -> StockMovement:
        if data.new_quantity < 0:
            raise ValidationFailed("Quantity cannot be negative.", {"new_quantity": ["Must be 0 or greater"]})

        product = self._get_product(user_id, data.product_id)
        previous = product.quantity
        return self._write(
            product, user_id, performed_by, MovementType.ADJUSTMENT, previous, data.new_quantity,
            abs(data.new_quantity - previous),
            reason=data.reason,
            notes=data.notes,
        )

    # =========================
    # Writes
    # =========================

    @service_operation("Failed to record stock movement.")
    def record_movement(self, user_id: int, performed_by: int, data: StockMovementCreate) -> OperationResult:
        require_user(user_id)
        movement = self.apply_movement(user_id, performed_by, data)
        self.db.commit()

        logger.info(
            "Recorded %s movement %s for product %s: %s -> %s",
            movement.type.value, movement.id, movement.product_id, movement.previous_qty, movement.new_qty,
        )
        write_log(self.db, user_id=user_id, action=movement.type.value, resource="stock",
                  entity_id=movement.product_id, meta={"movement_id": movement.id, "quantity": movement.quantity})
        return success("Stock movement recorded successfully.", movement)

    @service_operation("Failed to adjust stock.")
    def adjust_to_quantity(self, user_id: int, performed_by: int, data: StockAdjustment) -> OperationResult:
        require_user(user_id)
        movement = self.apply_adjustment(user_id, performed_by, data)
        self.db.commit()

        logger.info("Adjusted product %s to %s", movement.product_id, movement.new_qty)
        write_log(self.db, user_id=user_id, action="ADJUSTMENT", resource="stock",
                  entity_id=movement.product_id, meta={"movement_id": movement.id, "new_qty": movement.new_qty})
        return success("Stock adjusted successfully.", movement)

    @service_operation("Failed to record stock movements.")
    def record_bulk_movements(self, user_id: int, performed_by: int, data: BulkStockMovement) -> OperationResult:
        require_user(user_id)
        if not data.movements:
            raise ValidationFailed("No movements supplied.", {"movements": ["At least one movement is required"]})

        # Later rows see the quantities written by earlier rows of the same batch
        movements = [self.apply_movement(user_id, performed_by, item) for item in data.movements]
        self.db.commit()

        logger.info("Recorded %s movements in one transaction", len(movements))
        write_log(self.db, user_id=user_id, action="BULK", resource="stock",
                  meta={"movement_ids": [m.id for m in movements]})
        return success(f"{len(movements)} stock movements recorded successfully.", movements)

    # Administrative removal of a ledger row; product quantity is left as is
    @service_operation("Failed to delete stock movement.")
    def delete_movement(self, user_id: int, movement_id: int) -> OperationResult:
        require_user(user_id)
        movement = self.movements.find_by_id(movement_id, user_id)
        if not movement:
            raise NotFoundError("Stock movement not found or access denied.", {"movement_id": ["Not found"]})
        self.movements.delete(movement)
        self.db.commit()

        logger.warning("Stock movement %s deleted by user %s", movement_id, user_id)
        write_log(self.db, user_id=user_id, action="DELETE", resource="stock", entity_id=movement_id)
        return success("Stock movement deleted.")

    # =========================
    # Reads
    # =========================

    @service_operation("Failed to fetch stock movements.")
    def get_movements(self, user_id: int, limit: int = 100) -> OperationResult:
        require_user(user_id)
        return success("Stock movements retrieved.", self.movements.find_by_user_id(user_id, limit))

    @service_operation("Failed to fetch product history.")
    def get_product_history(self, user_id: int, product_id: int, limit: int = 50) -> OperationResult:
        require_user(user_id)
        self._get_product(user_id, product_id)
        return success("Product history retrieved.", self.movements.find_by_product_id(product_id, user_id, limit))

    @service_operation("Failed to fetch stock movements.")
    def get_movements_by_type(self, user_id: int, movement_type: MovementType, limit: int = 100) -> OperationResult:
        require_user(user_id)
        return success("Stock movements retrieved.", self.movements.find_by_type(user_id, movement_type, limit))

    @service_operation("Failed to fetch stock movements.")
    def get_movements_by_date_range(self, user_id: int, start: datetime, end: datetime) -> OperationResult:
        require_user(user_id)
        start, end = as_naive_utc(start), as_naive_utc(end)
        if start > end:
            raise ValidationFailed("Start date must be before end date.", {"start": ["Must be before end"]})
        return success("Stock movements retrieved.", self.movements.find_by_date_range(user_id, start, end))

    @service_operation("Failed to calculate movement totals.")
    def get_movement_totals(
        self, user_id: int, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> OperationResult:
        require_user(user_id)
        if start is not None or end is not None:
            start = as_naive_utc(start) or datetime.min
            end = as_naive_utc(end) or self.clock()
        return success("Movement totals calculated.", self.movements.get_totals_by_type(user_id, start, end))
