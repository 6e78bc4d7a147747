# backend/routes/products.py
from typing import Optional, List
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log
from utils.responses import unwrap
from models.users import User
from services.products import ProductService
from services.stock_ledger import StockLedgerService
from services.alerts import AlertService
from services.batches import BatchService
from services.suppliers import SupplierService
import schemas.product as product_schemas
import schemas.stock as stock_schemas
import schemas.alert as alert_schemas
import schemas.batch as batch_schemas
import schemas.supplier as supplier_schemas

router = APIRouter(tags=["Products"])


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    request: Request,
    search: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    tag_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    page_data = unwrap(ProductService(db).list_products(
        current_user.id, search=search, category_id=category_id, tag_id=tag_id, page=page, page_size=page_size,
    ))

    write_log(
        db, user_id=current_user.id, action="PRODUCTS_LIST", resource="products",
        status="SUCCESS", ip=request.client.host if request.client else None,
        meta={"page": page, "returned": len(page_data["items"])},
    )
    return page_data


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductResponse)
def get_product(
    product_id: int,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(ProductService(db).get_product(current_user.id, product_id))


@router.post("/products", response_model=product_schemas.ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(ProductService(db).create_product(current_user.id, current_user.id, payload))


@router.patch("/products/{product_id}", response_model=product_schemas.ProductResponse)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(ProductService(db).update_product(current_user.id, product_id, payload))


@router.delete("/products/{product_id}")
def delete_product(
    product_id: int,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    result = ProductService(db).delete_product(current_user.id, product_id)
    unwrap(result)
    return {"message": result.message}


# =========================
# QUICK STOCK ADJUSTMENT
# =========================
@router.post("/products/{product_id}/adjust-stock", response_model=stock_schemas.StockMovementResponse)
def adjust_product_stock(
    product_id: int,
    payload: product_schemas.StockDelta,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(ProductService(db).adjust_stock(current_user.id, current_user.id, product_id, payload.adjustment))


# =========================
# PRODUCT DETAIL VIEWS
# =========================
@router.get("/products/{product_id}/history", response_model=List[stock_schemas.StockMovementResponse])
def product_history(
    product_id: int,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(StockLedgerService(db).get_product_history(current_user.id, product_id, limit))


@router.get("/products/{product_id}/alerts", response_model=List[alert_schemas.StockAlertResponse])
def product_alerts(
    product_id: int,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(AlertService(db).get_product_alerts(current_user.id, product_id))


@router.get("/products/{product_id}/batches", response_model=List[batch_schemas.BatchResponse])
def product_batches(
    product_id: int,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(BatchService(db).get_product_batches(current_user.id, product_id))


@router.get("/products/{product_id}/suppliers", response_model=List[supplier_schemas.ProductSupplierResponse])
def product_suppliers(
    product_id: int,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(SupplierService(db).get_product_suppliers(current_user.id, product_id))


# =========================
# CATEGORIES
# =========================
@router.get("/categories", response_model=List[product_schemas.CategoryResponse])
def list_categories(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(ProductService(db).list_categories(current_user.id))


@router.post("/categories", response_model=product_schemas.CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: product_schemas.CategoryCreate,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(ProductService(db).create_category(current_user.id, payload))


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: int,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    result = ProductService(db).delete_category(current_user.id, category_id)
    unwrap(result)
    return {"message": result.message}


# =========================
# TAGS
# =========================
@router.get("/tags", response_model=List[product_schemas.TagResponse])
def list_tags(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(ProductService(db).list_tags(current_user.id))


@router.post("/tags", response_model=product_schemas.TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag(
    payload: product_schemas.TagCreate,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(ProductService(db).create_tag(current_user.id, payload))


@router.patch("/tags/{tag_id}", response_model=product_schemas.TagResponse)
def rename_tag(
    tag_id: int,
    payload: product_schemas.TagCreate,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return unwrap(ProductService(db).update_tag(current_user.id, tag_id, payload))


@router.delete("/tags/{tag_id}")
def delete_tag(
    tag_id: int,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    result = ProductService(db).delete_tag(current_user.id, tag_id)
    unwrap(result)
    return {"message": result.message}
