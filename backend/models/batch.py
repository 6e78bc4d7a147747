# backend/models/batch.py
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


# A received lot of a product, tracked for expiry.
# Batch quantities are informational and never change Product.quantity.
class Batch(Base):
    __tablename__ = "batches"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)

    batch_number = Column(String, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    manufactured_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True, index=True)
    received_at = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    product = relationship("Product")
