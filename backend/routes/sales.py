# backend/routes/sales.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from services.sales import SaleService
from utils.tokenJWT import get_current_user
from utils.responses import unwrap
import schemas.sale as sale_schemas

router = APIRouter(prefix="/sales", tags=["Sales"])


# Checkout: one sale with its lines, stock decremented in the same transaction
@router.post("", response_model=sale_schemas.SaleCreated, status_code=status.HTTP_201_CREATED)
def create_sale(
    payload: sale_schemas.SaleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(SaleService(db).create_sale(current_user.id, payload))


@router.get("/recent", response_model=List[sale_schemas.SaleDetail])
def recent_sales(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(SaleService(db).get_recent_sales(current_user.id, limit))


@router.get("/analytics", response_model=sale_schemas.SalesAnalytics)
def sales_analytics(
    date_range: sale_schemas.SalesRange = Query("30d"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(SaleService(db).get_sales_analytics(current_user.id, date_range))


# Receipt data
@router.get("/{sale_id}", response_model=sale_schemas.SaleDetail)
def get_sale(sale_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(SaleService(db).get_sale_details(current_user.id, sale_id))
