# backend/services/products.py
import logging
import math
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from models.product import Product, Tag
from models.stock import MovementType
from repositories.products import ProductRepository
from schemas.product import CategoryCreate, ProductCreate, ProductUpdate, TagCreate
from schemas.stock import StockAdjustment, StockMovementCreate
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
from services.stock_ledger import StockLedgerService
from utils.audit import write_log
from utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


def _whole_number(value) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value) or not value.is_integer()):
        return None
    return int(value)


class ProductService:
    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.products = ProductRepository(db)
        self.ledger = StockLedgerService(db, clock)

    def _get_owned(self, user_id: int, product_id: int) -> Product:
        product = self.products.find_by_id(product_id, user_id)
        if not product:
            raise NotFoundError("Product not found or access denied.", {"product_id": [f"Product {product_id} not found"]})
        return product

    def _check_category(self, user_id: int, category_id: Optional[int]) -> None:
        if category_id is not None and not self.products.find_category(category_id, user_id):
            raise NotFoundError("Category not found or access denied.", {"category_id": ["Category not found"]})

    def _owned_tags(self, user_id: int, tag_ids: Iterable[int]) -> List[Tag]:
        wanted = set(tag_ids)
        tags = self.products.find_tags_by_ids(wanted, user_id)
        if len(tags) != len(wanted):
            raise NotFoundError("One or more tags not found or access denied.", {"tag_ids": ["One or more tags not found"]})
        return tags

    def _get_tag(self, user_id: int, tag_id: int) -> Tag:
        tag = self.products.find_tag(tag_id, user_id)
        if not tag:
            raise NotFoundError("Tag not found or access denied.", {"tag_id": [f"Tag {tag_id} not found"]})
        return tag

    @staticmethod
    def _tag_name(data: TagCreate) -> str:
        name = data.name.strip()
        if not name:
            raise ValidationFailed("Tag name is required.", {"name": ["Name is required"]})
        return name

    # =========================
    # Products
    # =========================

    @service_operation("Failed to create product.")
    def create_product(self, user_id: int, performed_by: int, data: ProductCreate) -> OperationResult:
        """
        Creates a product with zero stock and books the initial quantity as an IN movement.

        The product, the movement and any alert are committed together.
        """
        require_user(user_id)
        self._check_category(user_id, data.category_id)
        tags = self._owned_tags(user_id, data.tag_ids)

        fields = data.model_dump(mode="json", exclude={"quantity", "tag_ids"})
        now = self.clock()
        product = self.products.create(user_id=user_id, quantity=0, created_at=now, updated_at=now, tags=tags, **fields)

        if data.quantity > 0:
            self.ledger.apply_movement(
                user_id,
                performed_by,
                StockMovementCreate(
                    product_id=product.id,
                    type=MovementType.IN,
                    quantity=data.quantity,
                    reason="Initial stock",
                ),
            )

        self.db.commit()
        logger.info("Created product %s (%s) with %s units", product.id, product.name, product.quantity)
        write_log(self.db, user_id=user_id, action="CREATE", resource="products", entity_id=product.id,
                  meta={"name": product.name, "quantity": product.quantity})
        return success("Product created successfully.", product)

    @service_operation("Failed to update product.")
    def update_product(self, user_id: int, product_id: int, data: ProductUpdate) -> OperationResult:
        require_user(user_id)
        product = self._get_owned(user_id, product_id)

        # Quantity only changes through the stock ledger
        changes = data.model_dump(mode="json", exclude_unset=True)
        for key in ("name", "manufacturer", "condition", "price"):
            if key in changes and changes[key] is None:
                raise ValidationFailed(f"{key} cannot be empty.", {key: ["Field cannot be null"]})
        if "category_id" in changes:
            self._check_category(user_id, changes["category_id"])
        tag_ids = changes.pop("tag_ids", None)
        if tag_ids is not None:
            changes["tags"] = self._owned_tags(user_id, tag_ids)

        self.products.update(product, updated_at=self.clock(), **changes)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="UPDATE", resource="products", entity_id=product_id,
                  meta={"fields": sorted(changes)})
        return success("Product updated successfully.", product)

    @service_operation("Failed to delete product.")
    def delete_product(self, user_id: int, product_id: int) -> OperationResult:
        require_user(user_id)
        product = self._get_owned(user_id, product_id)
        name = product.name
        self.products.delete(product)
        self.db.commit()
        logger.info("Deleted product %s (%s)", product_id, name)
        write_log(self.db, user_id=user_id, action="DELETE", resource="products", entity_id=product_id,
                  meta={"name": name})
        return success("Product deleted successfully.")

    @service_operation("Failed to fetch product.")
    def get_product(self, user_id: int, product_id: int) -> OperationResult:
        require_user(user_id)
        return success("Product retrieved.", self._get_owned(user_id, product_id))

    @service_operation("Failed to fetch products.")
    def list_products(
        self,
        user_id: int,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        tag_id: Optional[int] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> OperationResult:
        require_user(user_id)
        if page < 1 or page_size < 1:
            raise ValidationFailed("Invalid pagination.", {"page": ["page and page_size must be at least 1"]})

        products = self.products.find_by_user_id(user_id, search=search, category_id=category_id, tag_id=tag_id)
        start = (page - 1) * page_size
        return success(
            "Products retrieved.",
            {
                "items": products[start:start + page_size],
                "total": len(products),
                "page": page,
                "page_size": page_size,
            },
        )

    @service_operation("Failed to adjust stock.")
    def adjust_stock(self, user_id: int, performed_by: int, product_id: int, adjustment) -> OperationResult:
        """Quick +/- control; recorded as an ADJUSTMENT to the resulting quantity."""
        require_user(user_id)
        delta = _whole_number(adjustment)
        if delta is None:
            raise ValidationFailed("Invalid adjustment value.", {"adjustment": ["Adjustment must be a whole number"]})

        product = self._get_owned(user_id, product_id)
        new_quantity = product.quantity + delta
        if new_quantity < 0:
            raise InsufficientStockError(
                "Cannot adjust stock below zero.",
                {"adjustment": [f"Cannot reduce by {-delta}. Current stock: {product.quantity}"]},
            )

        movement = self.ledger.apply_adjustment(
            user_id,
            performed_by,
            StockAdjustment(product_id=product_id, new_quantity=new_quantity, reason="Manual stock adjustment"),
        )
        self.db.commit()
        write_log(self.db, user_id=user_id, action="ADJUSTMENT", resource="products", entity_id=product_id,
                  meta={"adjustment": delta, "movement_id": movement.id})
        return success(f"Stock adjusted successfully. New quantity: {movement.new_qty}", movement)

    # =========================
    # Categories
    # =========================

    @service_operation("Failed to create category.")
    def create_category(self, user_id: int, data: CategoryCreate) -> OperationResult:
        require_user(user_id)
        name = data.name.strip()
        if not name:
            raise ValidationFailed("Category name is required.", {"name": ["Name cannot be blank"]})
        if self.products.find_category_by_name(name, user_id):
            raise ConflictError("Category already exists.", {"name": [f"Category '{name}' already exists"]})

        category = self.products.create_category(user_id=user_id, name=name, description=data.description)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="CREATE", resource="categories", entity_id=category.id,
                  meta={"name": name})
        return success("Category created successfully.", category)

    @service_operation("Failed to fetch categories.")
    def list_categories(self, user_id: int) -> OperationResult:
        require_user(user_id)
        return success("Categories retrieved.", self.products.find_categories(user_id))

    @service_operation("Failed to delete category.")
    def delete_category(self, user_id: int, category_id: int) -> OperationResult:
        require_user(user_id)
        category = self.products.find_category(category_id, user_id)
        if not category:
            raise NotFoundError("Category not found or access denied.", {"category_id": ["Category not found"]})
        self.products.delete_category(category)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="DELETE", resource="categories", entity_id=category_id)
        return success("Category deleted.")

    # =========================
    # Tags
    # =========================

    @service_operation("Failed to create tag.")
    def create_tag(self, user_id: int, data: TagCreate) -> OperationResult:
        require_user(user_id)
        name = self._tag_name(data)
        if self.products.find_tag_by_name(name, user_id):
            raise ConflictError("Tag already exists.", {"name": ["Tag name already in use."]})

        tag = self.products.create_tag(user_id=user_id, name=name)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="CREATE", resource="tags", entity_id=tag.id,
                  meta={"name": name})
        return success("Tag created successfully.", tag)

    @service_operation("Failed to rename tag.")
    def update_tag(self, user_id: int, tag_id: int, data: TagCreate) -> OperationResult:
        require_user(user_id)
        tag = self._get_tag(user_id, tag_id)
        name = self._tag_name(data)
        duplicate = self.products.find_tag_by_name(name, user_id)
        if duplicate and duplicate.id != tag.id:
            raise ConflictError("Another tag already uses that name.", {"name": ["Another tag already uses that name."]})

        before = tag.name
        self.products.update_tag(tag, name)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="UPDATE", resource="tags", entity_id=tag_id,
                  meta={"before": before, "after": name})
        return success("Tag renamed successfully.", tag)

    @service_operation("Failed to fetch tags.")
    def list_tags(self, user_id: int) -> OperationResult:
        require_user(user_id)
        return success("Tags retrieved.", self.products.find_tags(user_id))

    @service_operation("Failed to delete tag.")
    def delete_tag(self, user_id: int, tag_id: int) -> OperationResult:
        require_user(user_id)
        tag = self._get_tag(user_id, tag_id)
        name = tag.name
        self.products.delete_tag(tag)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="DELETE", resource="tags", entity_id=tag_id,
                  meta={"name": name})
        return success("Tag deleted successfully.")
