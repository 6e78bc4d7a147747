# backend/routes/alerts.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.alert import AlertType
from models.users import User
from services.alerts import AlertService
from utils.tokenJWT import get_current_user
from utils.responses import unwrap
import schemas.alert as alert_schemas

router = APIRouter(prefix="/alerts", tags=["Alerts"])


@router.get("", response_model=List[alert_schemas.StockAlertResponse])
def list_alerts(
    include_acknowledged: bool = Query(False),
    type: Optional[AlertType] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = AlertService(db)
    if type is not None:
        return unwrap(service.get_alerts_by_type(current_user.id, type))
    return unwrap(service.get_user_alerts(current_user.id, include_acknowledged))


# Badge counter for the dashboard
@router.get("/count", response_model=alert_schemas.UnacknowledgedCount)
def unacknowledged_count(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return {"count": unwrap(AlertService(db).get_unacknowledged_count(current_user.id))}


@router.post("/acknowledge", response_model=List[alert_schemas.StockAlertResponse])
def bulk_acknowledge(
    payload: alert_schemas.BulkAcknowledge,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(AlertService(db).bulk_acknowledge(current_user.id, payload.alert_ids, current_user.id))


@router.get("/{alert_id}", response_model=alert_schemas.StockAlertResponse)
def get_alert(alert_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(AlertService(db).get_alert(current_user.id, alert_id))


@router.post("", response_model=alert_schemas.StockAlertResponse, status_code=status.HTTP_201_CREATED)
def create_alert(
    payload: alert_schemas.StockAlertCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(AlertService(db).create_alert(current_user.id, payload))


@router.post("/{alert_id}/acknowledge", response_model=alert_schemas.StockAlertResponse)
def acknowledge_alert(alert_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(AlertService(db).acknowledge_alert(current_user.id, alert_id, current_user.id))


@router.post("/{alert_id}/resolve", response_model=alert_schemas.StockAlertResponse)
def resolve_alert(alert_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(AlertService(db).resolve_alert(current_user.id, alert_id))


@router.delete("/{alert_id}")
def delete_alert(alert_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    result = AlertService(db).delete_alert(current_user.id, alert_id)
    unwrap(result)
    return {"message": result.message}
