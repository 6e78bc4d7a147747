# backend/models/inventory_value.py
from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, func
from database import Base


# Point-in-time rollup of a user's inventory for trend charts
class InventoryValue(Base):
    __tablename__ = "inventory_values"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    total_products = Column(Integer, nullable=False)
    total_quantity = Column(Integer, nullable=False)
    total_value = Column(Float, nullable=False)
    low_stock_count = Column(Integer, nullable=False)
    out_of_stock_count = Column(Integer, nullable=False)
    snapshot_date = Column(DateTime, server_default=func.now(), index=True)
