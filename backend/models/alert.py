# backend/models/alert.py
import enum
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from database import Base


class AlertType(str, enum.Enum):
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"


ALERT_TYPE_LABELS = {
    AlertType.LOW_STOCK: "Low Stock",
    AlertType.OUT_OF_STOCK: "Out of Stock",
    AlertType.EXPIRING_SOON: "Expiring Soon",
    AlertType.EXPIRED: "Expired",
}


# Stock alert raised when a threshold is crossed or a batch nears expiry.
# Acknowledged and resolved are independent flags, each set once.
class StockAlert(Base):
    __tablename__ = "stock_alerts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)

    type = Column(Enum(AlertType), nullable=False, index=True)
    message = Column(String, nullable=False)

    # Snapshot of the values that triggered the alert
    threshold = Column(Integer, nullable=True)
    current_value = Column(Integer, nullable=True)

    acknowledged = Column(Boolean, default=False, nullable=False, index=True)
    acknowledged_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    acknowledged_at = Column(DateTime, nullable=True)
    resolved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), index=True)

    product = relationship("Product")
