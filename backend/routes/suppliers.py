# backend/routes/suppliers.py
from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from services.suppliers import SupplierService
from utils.tokenJWT import get_current_user
from utils.responses import unwrap
import schemas.supplier as supplier_schemas

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


# =========================
# SUPPLIERS
# =========================
@router.get("", response_model=List[supplier_schemas.SupplierResponse])
def list_suppliers(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = SupplierService(db)
    if active_only:
        return unwrap(service.get_active_suppliers(current_user.id))
    return unwrap(service.get_all_suppliers(current_user.id))


@router.post("", response_model=supplier_schemas.SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(
    payload: supplier_schemas.SupplierCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(SupplierService(db).create_supplier(current_user.id, payload))


@router.get("/{supplier_id}", response_model=supplier_schemas.SupplierResponse)
def get_supplier(supplier_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(SupplierService(db).get_supplier(current_user.id, supplier_id))


@router.patch("/{supplier_id}", response_model=supplier_schemas.SupplierResponse)
def update_supplier(
    supplier_id: int,
    payload: supplier_schemas.SupplierUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(SupplierService(db).update_supplier(current_user.id, supplier_id, payload))


@router.delete("/{supplier_id}")
def delete_supplier(supplier_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    result = SupplierService(db).delete_supplier(current_user.id, supplier_id)
    unwrap(result)
    return {"message": result.message}


# =========================
# PRODUCT LINKS
# =========================
@router.get("/{supplier_id}/products", response_model=List[supplier_schemas.ProductSupplierResponse])
def supplier_products(supplier_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(SupplierService(db).get_supplier_products(current_user.id, supplier_id))


@router.post("/links", response_model=supplier_schemas.ProductSupplierResponse, status_code=status.HTTP_201_CREATED)
def link_product(
    payload: supplier_schemas.ProductSupplierLink,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(SupplierService(db).link_product_to_supplier(current_user.id, payload))


@router.patch("/links/{link_id}", response_model=supplier_schemas.ProductSupplierResponse)
def update_link(
    link_id: int,
    payload: supplier_schemas.ProductSupplierUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(SupplierService(db).update_product_supplier(current_user.id, link_id, payload))


@router.delete("/{supplier_id}/products/{product_id}")
def unlink_product(
    supplier_id: int,
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = SupplierService(db).unlink_product_from_supplier(current_user.id, product_id, supplier_id)
    unwrap(result)
    return {"message": result.message}
