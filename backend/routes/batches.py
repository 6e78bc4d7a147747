# backend/routes/batches.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from services.batches import BatchService
from utils.tokenJWT import get_current_user
from utils.responses import unwrap
import schemas.batch as batch_schemas

router = APIRouter(prefix="/batches", tags=["Batches"])


@router.post("", response_model=batch_schemas.BatchResponse, status_code=status.HTTP_201_CREATED)
def create_batch(
    payload: batch_schemas.BatchCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(BatchService(db).create_batch(current_user.id, payload))


@router.get("/expiring", response_model=List[batch_schemas.BatchResponse])
def expiring_batches(
    days: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(BatchService(db).get_expiring_batches(current_user.id, days))


@router.get("/expired", response_model=List[batch_schemas.BatchResponse])
def expired_batches(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(BatchService(db).get_expired_batches(current_user.id))


# On-demand expiry sweep; raises a fresh alert per matching batch every time
@router.post("/check-expiry", response_model=batch_schemas.ExpirySweepResult)
def check_expiry(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(BatchService(db).check_expiring_batches(current_user.id))


@router.get("/{batch_id}", response_model=batch_schemas.BatchResponse)
def get_batch(batch_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(BatchService(db).get_batch(current_user.id, batch_id))


@router.patch("/{batch_id}", response_model=batch_schemas.BatchResponse)
def update_batch(
    batch_id: int,
    payload: batch_schemas.BatchUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(BatchService(db).update_batch(current_user.id, batch_id, payload))


@router.delete("/{batch_id}")
def delete_batch(batch_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    result = BatchService(db).delete_batch(current_user.id, batch_id)
    unwrap(result)
    return {"message": result.message}
