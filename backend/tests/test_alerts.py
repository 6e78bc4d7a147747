from datetime import datetime

from models.alert import AlertType, StockAlert
from schemas.alert import StockAlertCreate
from services.alerts import AlertService
from services.results import ErrorKind

from conftest import NOW


def raise_alert(db, user, product, alert_type=AlertType.LOW_STOCK):
    alert = StockAlert(
        user_id=user.id, product_id=product.id, type=alert_type,
        message="Product stock is low (3 remaining)", threshold=5, current_value=3,
        acknowledged=False, created_at=datetime(2025, 3, 1),
    )
    db.add(alert)
    db.commit()
    return alert


def test_check_creates_out_of_stock_before_low_stock(db, user, product, clock):
    service = AlertService(db, clock)

    alert = service.check_and_create_alerts(user.id, product.id, 0, 5)

    assert alert.type == AlertType.OUT_OF_STOCK
    assert alert.threshold == 5
    assert alert.current_value == 0


def test_check_ignores_healthy_stock_and_missing_threshold(db, user, product, clock):
    service = AlertService(db, clock)

    assert service.check_and_create_alerts(user.id, product.id, 6, 5) is None
    assert service.check_and_create_alerts(user.id, product.id, 1, None) is None
    assert service.check_and_create_alerts(user.id, product.id, 5, 5).type == AlertType.LOW_STOCK


def test_check_never_deduplicates(db, user, product, clock):
    service = AlertService(db, clock)
    for _ in range(3):
        service.check_and_create_alerts(user.id, product.id, 2, 5)
    db.commit()

    assert db.query(StockAlert).count() == 3


def test_acknowledge_stamps_actor_and_time(db, user, product, clock):
    alert = raise_alert(db, user, product)

    result = AlertService(db, clock).acknowledge_alert(user.id, alert.id, user.id)

    assert result.success
    db.refresh(alert)
    assert alert.acknowledged
    assert alert.acknowledged_by == user.id
    assert alert.acknowledged_at == NOW
    assert alert.resolved_at is None


def test_resolve_is_independent_of_acknowledgement(db, user, product, clock):
    alert = raise_alert(db, user, product)

    assert AlertService(db, clock).resolve_alert(user.id, alert.id).success

    db.refresh(alert)
    assert alert.resolved_at == NOW
    assert not alert.acknowledged


def test_acknowledged_alerts_drop_out_of_default_listing(db, user, product, clock):
    first = raise_alert(db, user, product)
    raise_alert(db, user, product)
    service = AlertService(db, clock)
    service.acknowledge_alert(user.id, first.id, user.id)

    assert len(service.get_user_alerts(user.id).data) == 1
    assert len(service.get_user_alerts(user.id, include_acknowledged=True).data) == 2
    assert service.get_unacknowledged_count(user.id).data == 1


def test_bulk_acknowledge_is_all_or_nothing(db, user, other_user, product, clock):
    mine = raise_alert(db, user, product)
    theirs = raise_alert(db, other_user, product)
    service = AlertService(db, clock)

    result = service.bulk_acknowledge(user.id, [mine.id, theirs.id], user.id)

    assert result.error_kind == ErrorKind.NOT_FOUND
    db.refresh(mine)
    assert not mine.acknowledged

    assert service.bulk_acknowledge(user.id, [mine.id], user.id).success
    db.refresh(mine)
    assert mine.acknowledged


def test_alerts_of_other_users_are_not_found(db, user, other_user, product, clock):
    alert = raise_alert(db, user, product)
    service = AlertService(db, clock)

    assert service.get_alert(other_user.id, alert.id).error_kind == ErrorKind.NOT_FOUND
    assert service.acknowledge_alert(other_user.id, alert.id, other_user.id).error_kind == ErrorKind.NOT_FOUND
    assert service.delete_alert(other_user.id, alert.id).error_kind == ErrorKind.NOT_FOUND


def test_manual_alert_and_filters(db, user, product, clock):
    service = AlertService(db, clock)

    created = service.create_alert(user.id, StockAlertCreate(
        product_id=product.id, type=AlertType.EXPIRED, message="Damaged pallet",
    ))

    assert created.success
    assert [a.id for a in service.get_alerts_by_type(user.id, AlertType.EXPIRED).data] == [created.data.id]
    assert len(service.get_product_alerts(user.id, product.id).data) == 1
    assert service.delete_alert(user.id, created.data.id).success
    assert db.query(StockAlert).count() == 0
