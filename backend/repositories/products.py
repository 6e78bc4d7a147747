# backend/repositories/products.py
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models.product import Category, Product, Tag


class ProductRepository:
    """Product and category persistence. Flushes, never commits."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, product_id: int, user_id: int) -> Optional[Product]:
        return (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.user_id == user_id)
            .first()
        )

    def find_by_ids(self, product_ids: Iterable[int], user_id: int) -> List[Product]:
        ids = list(set(product_ids))
        if not ids:
            return []
        return (
            self.db.query(Product)
            .filter(Product.id.in_(ids), Product.user_id == user_id)
            .all()
        )

    def find_by_user_id(
        self,
        user_id: int,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        tag_id: Optional[int] = None,
    ) -> List[Product]:
        query = self.db.query(Product).filter(Product.user_id == user_id)
        if search:
            like = f"%{search}%"
            query = query.filter(
                or_(Product.name.ilike(like), Product.sku.ilike(like), Product.manufacturer.ilike(like))
            )
        if category_id is not None:
            query = query.filter(Product.category_id == category_id)
        if tag_id is not None:
            query = query.filter(Product.tags.any(Tag.id == tag_id))
        return query.order_by(Product.name.asc()).all()

    def create(self, **fields) -> Product:
        product = Product(**fields)
        self.db.add(product)
        self.db.flush()
        return product

    def update(self, product: Product, **fields) -> Product:
        for key, value in fields.items():
            setattr(product, key, value)
        self.db.flush()
        return product

    # Compare-and-swap on quantity; returns the number of rows changed (0 = lost race)
    def update_quantity(self, product_id: int, user_id: int, new_quantity: int, expected_quantity: int) -> int:
        return (
            self.db.query(Product)
            .filter(
                Product.id == product_id,
                Product.user_id == user_id,
                Product.quantity == expected_quantity,
            )
            .update({Product.quantity: new_quantity}, synchronize_session="fetch")
        )

    # Guarded decrement; 0 rows means the stock is no longer there
    def decrement_quantity(self, product_id: int, user_id: int, amount: int) -> int:
        return (
            self.db.query(Product)
            .filter(
                Product.id == product_id,
                Product.user_id == user_id,
                Product.quantity >= amount,
            )
            .update({Product.quantity: Product.quantity - amount}, synchronize_session="fetch")
        )

    def delete(self, product: Product) -> None:
        self.db.delete(product)
        self.db.flush()

    # At or below the product's own threshold, lowest stock first
    def find_low_stock(self, user_id: int) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(
                Product.user_id == user_id,
                Product.low_stock_at.isnot(None),
                Product.quantity <= Product.low_stock_at,
            )
            .order_by(Product.quantity.asc(), Product.name.asc())
            .all()
        )

    def find_out_of_stock(self, user_id: int) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.user_id == user_id, Product.quantity == 0)
            .order_by(Product.name.asc())
            .all()
        )

    # Highest stock value (quantity x price) first
    def find_top_by_value(self, user_id: int, limit: int = 10) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.user_id == user_id)
            .order_by((Product.quantity * Product.price).desc(), Product.id.asc())
            .limit(limit)
            .all()
        )

    # ---- categories ----
    def find_category(self, category_id: int, user_id: int) -> Optional[Category]:
        return (
            self.db.query(Category)
            .filter(Category.id == category_id, Category.user_id == user_id)
            .first()
        )

    def find_category_by_name(self, name: str, user_id: int) -> Optional[Category]:
        return (
            self.db.query(Category)
            .filter(Category.user_id == user_id, Category.name == name)
            .first()
        )

    def find_categories(self, user_id: int) -> List[Category]:
        return (
            self.db.query(Category)
            .filter(Category.user_id == user_id)
            .order_by(Category.name.asc())
            .all()
        )

    def create_category(self, **fields) -> Category:
        category = Category(**fields)
        self.db.add(category)
        self.db.flush()
        return category

    def delete_category(self, category: Category) -> None:
        # Products keep existing without a category
        self.db.query(Product).filter(Product.category_id == category.id).update(
            {Product.category_id: None}, synchronize_session="fetch"
        )
        self.db.delete(category)
        self.db.flush()

    # ---- tags ----
    def find_tag(self, tag_id: int, user_id: int) -> Optional[Tag]:
        return self.db.query(Tag).filter(Tag.id == tag_id, Tag.user_id == user_id).first()

    def find_tag_by_name(self, name: str, user_id: int) -> Optional[Tag]:
        return self.db.query(Tag).filter(Tag.user_id == user_id, Tag.name == name).first()

    def find_tags(self, user_id: int) -> List[Tag]:
        return self.db.query(Tag).filter(Tag.user_id == user_id).order_by(Tag.name.asc()).all()

    def find_tags_by_ids(self, tag_ids: Iterable[int], user_id: int) -> List[Tag]:
        ids = list(set(tag_ids))
        if not ids:
            return []
        return self.db.query(Tag).filter(Tag.id.in_(ids), Tag.user_id == user_id).all()

    def create_tag(self, **fields) -> Tag:
        tag = Tag(**fields)
        self.db.add(tag)
        self.db.flush()
        return tag

    def update_tag(self, tag: Tag, name: str) -> Tag:
        tag.name = name
        self.db.flush()
        return tag

    def delete_tag(self, tag: Tag) -> None:
        # The association rows go with the tag; products stay
        self.db.delete(tag)
        self.db.flush()
