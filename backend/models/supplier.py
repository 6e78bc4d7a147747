# backend/models/supplier.py
from sqlalchemy import (
    Column, Integer, String, Float, Text, Boolean, ForeignKey, DateTime, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base


# Supplier contact details
class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String, nullable=False, index=True)
    contact_person = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    website = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    products = relationship("ProductSupplier", back_populates="supplier", cascade="all, delete-orphan")


# Per-product sourcing terms; at most one link per product is primary
class ProductSupplier(Base):
    __tablename__ = "product_suppliers"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="CASCADE"), index=True, nullable=False)

    supplier_sku = Column(String, nullable=True)
    cost_price = Column(Float, nullable=False)
    lead_time_days = Column(Integer, nullable=True)
    min_order_qty = Column(Integer, nullable=True)
    is_primary = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    supplier = relationship("Supplier", back_populates="products")
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("product_id", "supplier_id", name="uq_product_supplier_pair"),
    )
