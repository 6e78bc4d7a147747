# backend/routes/stock.py
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional, List

from database import get_db
from models.stock import MovementType
from models.users import User
from services.stock_ledger import StockLedgerService
from utils.tokenJWT import get_current_user
from utils.responses import unwrap
import schemas.stock as stock_schemas

router = APIRouter(tags=["Stock"])


# Latest movements, optionally of one type
@router.get("/", response_model=List[stock_schemas.StockMovementResponse])
def list_movements(
    type: Optional[MovementType] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ledger = StockLedgerService(db)
    if type is not None:
        return unwrap(ledger.get_movements_by_type(current_user.id, type, limit))
    return unwrap(ledger.get_movements(current_user.id, limit))


@router.get("/range", response_model=List[stock_schemas.StockMovementResponse])
def movements_in_range(
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(StockLedgerService(db).get_movements_by_date_range(current_user.id, start, end))


@router.get("/totals", response_model=stock_schemas.MovementTotals)
def movement_totals(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"totals": unwrap(StockLedgerService(db).get_movement_totals(current_user.id, start, end))}


@router.post("/movements", response_model=stock_schemas.StockMovementResponse, status_code=status.HTTP_201_CREATED)
def record_movement(
    payload: stock_schemas.StockMovementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(StockLedgerService(db).record_movement(current_user.id, current_user.id, payload))


# Set a product to a counted quantity
@router.post("/adjust", response_model=stock_schemas.StockMovementResponse, status_code=status.HTTP_201_CREATED)
def adjust_stock(
    payload: stock_schemas.StockAdjustment,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(StockLedgerService(db).adjust_to_quantity(current_user.id, current_user.id, payload))


# Delivery of several products, applied all-or-nothing
@router.post("/bulk", response_model=List[stock_schemas.StockMovementResponse], status_code=status.HTTP_201_CREATED)
def record_bulk(
    payload: stock_schemas.BulkStockMovement,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(StockLedgerService(db).record_bulk_movements(current_user.id, current_user.id, payload))


@router.delete("/movements/{movement_id}")
def delete_movement(
    movement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = StockLedgerService(db).delete_movement(current_user.id, movement_id)
    unwrap(result)
    return {"message": result.message}
