# backend/models/stock.py
import enum
from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from database import Base


# Movement classification; each type has its own quantity rule in services.stock_ledger
class MovementType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"
    RETURN = "RETURN"


MOVEMENT_TYPE_LABELS = {
    MovementType.IN: "Stock In",
    MovementType.OUT: "Stock Out",
    MovementType.ADJUSTMENT: "Adjustment",
    MovementType.RETURN: "Return",
}


# Immutable ledger row explaining one change of a product's quantity
class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="SET NULL"), nullable=True)

    type = Column(Enum(MovementType), nullable=False, index=True)

    # Magnitude of the movement; previous/new quantities are captured at write time
    quantity = Column(Integer, nullable=False)
    previous_qty = Column(Integer, nullable=False)
    new_qty = Column(Integer, nullable=False)

    unit_cost = Column(Float, nullable=True)
    total_cost = Column(Float, nullable=True)

    reference = Column(String, nullable=True)
    reason = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # Actor id supplied by the identity provider
    performed_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, server_default=func.now(), index=True)

    product = relationship("Product")
