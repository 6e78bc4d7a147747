# backend/services/suppliers.py
import logging

from sqlalchemy.orm import Session

from models.supplier import ProductSupplier, Supplier
from repositories.products import ProductRepository
from repositories.suppliers import SupplierRepository
from schemas.supplier import ProductSupplierLink, ProductSupplierUpdate, SupplierCreate, SupplierUpdate
from services.results import ConflictError, NotFoundError, OperationResult, require_user, service_operation, success
from utils.audit import write_log
from utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class SupplierService:
    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.suppliers = SupplierRepository(db)
        self.products = ProductRepository(db)

    def _get_supplier(self, user_id: int, supplier_id: int) -> Supplier:
        supplier = self.suppliers.find_by_id(supplier_id, user_id)
        if not supplier:
            raise NotFoundError(
                "Supplier not found or access denied.",
                {"supplier_id": [f"Supplier {supplier_id} not found"]},
            )
        return supplier

    def _check_product(self, user_id: int, product_id: int) -> None:
        if not self.products.find_by_id(product_id, user_id):
            raise NotFoundError(
                "Product not found or access denied.",
                {"product_id": [f"Product {product_id} not found"]},
            )

    # =========================
    # Suppliers
    # =========================

    @service_operation("Failed to create supplier.")
    def create_supplier(self, user_id: int, data: SupplierCreate) -> OperationResult:
        require_user(user_id)
        supplier = self.suppliers.create(user_id=user_id, **data.model_dump())
        self.db.commit()
        logger.info("Created supplier %s (%s)", supplier.id, supplier.name)
        write_log(self.db, user_id=user_id, action="CREATE", resource="suppliers", entity_id=supplier.id,
                  meta={"name": supplier.name})
        return success("Supplier created successfully.", supplier)

    @service_operation("Failed to fetch supplier.")
    def get_supplier(self, user_id: int, supplier_id: int) -> OperationResult:
        require_user(user_id)
        return success("Supplier retrieved.", self._get_supplier(user_id, supplier_id))

    @service_operation("Failed to fetch suppliers.")
    def get_all_suppliers(self, user_id: int) -> OperationResult:
        require_user(user_id)
        return success("Suppliers retrieved.", self.suppliers.find_by_user_id(user_id))

    @service_operation("Failed to fetch suppliers.")
    def get_active_suppliers(self, user_id: int) -> OperationResult:
        require_user(user_id)
        return success("Active suppliers retrieved.", self.suppliers.find_active_by_user_id(user_id))

    @service_operation("Failed to update supplier.")
    def update_supplier(self, user_id: int, supplier_id: int, data: SupplierUpdate) -> OperationResult:
        require_user(user_id)
        supplier = self._get_supplier(user_id, supplier_id)
        changes = data.model_dump(exclude_unset=True)
        self.suppliers.update(supplier, **changes)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="UPDATE", resource="suppliers", entity_id=supplier_id,
                  meta={"fields": sorted(changes)})
        return success("Supplier updated successfully.", supplier)

    @service_operation("Failed to delete supplier.")
    def delete_supplier(self, user_id: int, supplier_id: int) -> OperationResult:
        require_user(user_id)
        supplier = self._get_supplier(user_id, supplier_id)
        self.suppliers.delete(supplier)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="DELETE", resource="suppliers", entity_id=supplier_id)
        return success("Supplier deleted.")

    # =========================
    # Product links
    # =========================

    @service_operation("Failed to link product to supplier.")
    def link_product_to_supplier(self, user_id: int, data: ProductSupplierLink) -> OperationResult:
        require_user(user_id)
        self._check_product(user_id, data.product_id)
        self._get_supplier(user_id, data.supplier_id)

        if self.suppliers.find_link(data.product_id, data.supplier_id):
            raise ConflictError(
                "Product is already linked to this supplier.",
                {"supplier_id": ["Link already exists"]},
            )

        # At most one primary supplier per product
        if data.is_primary:
            self.suppliers.clear_primary(data.product_id)

        link = self.suppliers.link_product(**data.model_dump())
        self.db.commit()
        logger.info("Linked product %s to supplier %s (primary=%s)", link.product_id, link.supplier_id, link.is_primary)
        write_log(self.db, user_id=user_id, action="LINK", resource="suppliers", entity_id=link.supplier_id,
                  meta={"product_id": link.product_id, "is_primary": link.is_primary})
        return success("Product linked to supplier.", link)

    @service_operation("Failed to unlink product from supplier.")
    def unlink_product_from_supplier(self, user_id: int, product_id: int, supplier_id: int) -> OperationResult:
        require_user(user_id)
        self._check_product(user_id, product_id)
        self._get_supplier(user_id, supplier_id)

        if self.suppliers.unlink_product(product_id, supplier_id) == 0:
            raise NotFoundError("Product is not linked to this supplier.", {"supplier_id": ["Link not found"]})
        self.db.commit()
        write_log(self.db, user_id=user_id, action="UNLINK", resource="suppliers", entity_id=supplier_id,
                  meta={"product_id": product_id})
        return success("Product unlinked from supplier.")

    @service_operation("Failed to fetch product suppliers.")
    def get_product_suppliers(self, user_id: int, product_id: int) -> OperationResult:
        require_user(user_id)
        self._check_product(user_id, product_id)
        return success("Product suppliers retrieved.", self.suppliers.find_product_suppliers(product_id))

    @service_operation("Failed to fetch supplier products.")
    def get_supplier_products(self, user_id: int, supplier_id: int) -> OperationResult:
        require_user(user_id)
        self._get_supplier(user_id, supplier_id)
        return success("Supplier products retrieved.", self.suppliers.find_supplier_products(supplier_id))

    @service_operation("Failed to update product supplier.")
    def update_product_supplier(self, user_id: int, link_id: int, data: ProductSupplierUpdate) -> OperationResult:
        require_user(user_id)
        link: ProductSupplier = self.suppliers.find_link_by_id(link_id, user_id)
        if not link:
            raise NotFoundError("Supplier link not found or access denied.", {"link_id": ["Link not found"]})

        changes = data.model_dump(exclude_unset=True)
        if changes.get("is_primary") is None:
            changes.pop("is_primary", None)
        if changes.get("is_primary"):
            self.suppliers.clear_primary(link.product_id, except_id=link.id)

        self.suppliers.update_product_supplier(link, **changes)
        self.db.commit()
        write_log(self.db, user_id=user_id, action="UPDATE", resource="suppliers", entity_id=link.supplier_id,
                  meta={"link_id": link_id, "fields": sorted(changes)})
        return success("Product supplier updated.", link)
