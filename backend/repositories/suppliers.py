# backend/repositories/suppliers.py
from typing import List, Optional

from sqlalchemy.orm import Session

from models.supplier import ProductSupplier, Supplier


class SupplierRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields) -> Supplier:
        supplier = Supplier(**fields)
        self.db.add(supplier)
        self.db.flush()
        return supplier

    def find_by_id(self, supplier_id: int, user_id: int) -> Optional[Supplier]:
        return (
            self.db.query(Supplier)
            .filter(Supplier.id == supplier_id, Supplier.user_id == user_id)
            .first()
        )

    def find_by_user_id(self, user_id: int) -> List[Supplier]:
        return (
            self.db.query(Supplier)
            .filter(Supplier.user_id == user_id)
            .order_by(Supplier.name.asc())
            .all()
        )

    def find_active_by_user_id(self, user_id: int) -> List[Supplier]:
        return (
            self.db.query(Supplier)
            .filter(Supplier.user_id == user_id, Supplier.active.is_(True))
            .order_by(Supplier.name.asc())
            .all()
        )

    def update(self, supplier: Supplier, **fields) -> Supplier:
        for key, value in fields.items():
            setattr(supplier, key, value)
        self.db.flush()
        return supplier

    def delete(self, supplier: Supplier) -> None:
        self.db.delete(supplier)
        self.db.flush()

    # ---- product <-> supplier links ----
    def link_product(self, **fields) -> ProductSupplier:
        link = ProductSupplier(**fields)
        self.db.add(link)
        self.db.flush()
        return link

    def find_link(self, product_id: int, supplier_id: int) -> Optional[ProductSupplier]:
        return (
            self.db.query(ProductSupplier)
            .filter(ProductSupplier.product_id == product_id, ProductSupplier.supplier_id == supplier_id)
            .first()
        )

    def find_link_by_id(self, link_id: int, user_id: int) -> Optional[ProductSupplier]:
        return (
            self.db.query(ProductSupplier)
            .join(Supplier, Supplier.id == ProductSupplier.supplier_id)
            .filter(ProductSupplier.id == link_id, Supplier.user_id == user_id)
            .first()
        )

    def unlink_product(self, product_id: int, supplier_id: int) -> int:
        return (
            self.db.query(ProductSupplier)
            .filter(ProductSupplier.product_id == product_id, ProductSupplier.supplier_id == supplier_id)
            .delete(synchronize_session="fetch")
        )

    # Primary link first
    def find_product_suppliers(self, product_id: int) -> List[ProductSupplier]:
        return (
            self.db.query(ProductSupplier)
            .filter(ProductSupplier.product_id == product_id)
            .order_by(ProductSupplier.is_primary.desc(), ProductSupplier.id.asc())
            .all()
        )

    def find_supplier_products(self, supplier_id: int) -> List[ProductSupplier]:
        return (
            self.db.query(ProductSupplier)
            .filter(ProductSupplier.supplier_id == supplier_id)
            .order_by(ProductSupplier.id.asc())
            .all()
        )

    def update_product_supplier(self, link: ProductSupplier, **fields) -> ProductSupplier:
        for key, value in fields.items():
            setattr(link, key, value)
        self.db.flush()
        return link

    # Clears the primary flag on every link of the product in a single UPDATE
    def clear_primary(self, product_id: int, except_id: Optional[int] = None) -> int:
        query = self.db.query(ProductSupplier).filter(
            ProductSupplier.product_id == product_id,
            ProductSupplier.is_primary.is_(True),
        )
        if except_id is not None:
            query = query.filter(ProductSupplier.id != except_id)
        return query.update({ProductSupplier.is_primary: False}, synchronize_session="fetch")
