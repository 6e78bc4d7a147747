# backend/models/sale.py
from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


# Represents a completed checkout
class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    invoice_number = Column(String, unique=True, nullable=False, index=True)

    customer = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)

    subtotal = Column(Float, nullable=False)
    discount = Column(Float, nullable=False, default=0)
    tax = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False)

    notes = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="completed", index=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)

    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")


# Sale line, snapshotting product name and prices at the time of sale
class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), index=True, nullable=True)
    product_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    discount = Column(Float, nullable=False, default=0)
    subtotal = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")


# Per-day invoice counter, incremented inside the checkout transaction
class InvoiceSequence(Base):
    __tablename__ = "invoice_sequences"

    date_key = Column(String(8), primary_key=True) # YYYYMMDD
    last_value = Column(Integer, nullable=False, default=0)
