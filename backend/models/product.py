# backend/models/product.py
import enum
from sqlalchemy import (
    Column, Integer, String, Float, Text, ForeignKey, DateTime, CheckConstraint, UniqueConstraint, Table, func
)
from sqlalchemy.orm import relationship
from database import Base


class ProductCondition(str, enum.Enum):
    NEW = "new"
    USED = "used"
    REFURBISHED = "refurbished"
    FOR_PARTS = "for-parts"


# Optional grouping for products, unique by name per owner
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    products = relationship("Product", back_populates="category")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_category_user_name"),
    )


# Many-to-many link between products and tags
product_tags = Table(
    "product_tags",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


# Free-form label, unique by name per owner
class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    products = relationship("Product", secondary=product_tags, back_populates="tags")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_tag_user_name"),
    )


# Model Product
# A single catalog entry owned by one user.
# `quantity` is the on-hand stock and only moves through the stock ledger
# (or a sale decrement), never by editing the product directly.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    name = Column(String, nullable=False, index=True)
    manufacturer = Column(String, nullable=False)
    model = Column(String, nullable=True)
    sku = Column(String, nullable=True, index=True)

    # Stock data, guarded by constraints
    quantity = Column(Integer, CheckConstraint("quantity >= 0", name="ck_product_quantity_non_negative"), nullable=False, default=0)
    low_stock_at = Column(Integer, nullable=True)
    condition = Column(String, nullable=False, default=ProductCondition.NEW.value)
    location = Column(String, nullable=True)

    price = Column(Float, CheckConstraint("price >= 0", name="ck_product_price_non_negative"), nullable=False, default=0)

    specs = Column(Text, nullable=True)
    compatibility = Column(Text, nullable=True)
    supplier = Column(String, nullable=True) # Free text, structured links live in product_suppliers
    warranty_months = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    # Optional product image URL
    image_url = Column(String, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="products")
    tags = relationship("Tag", secondary=product_tags, back_populates="products", order_by="Tag.name")
