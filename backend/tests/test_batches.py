from datetime import datetime, timedelta

from models.alert import AlertType, StockAlert
from models.batch import Batch
from schemas.batch import BatchCreate, BatchUpdate
from services.batches import BatchService, days_until_expiry
from services.results import ErrorKind

from conftest import NOW

EXPIRES = datetime(2024, 6, 1)


def fixed(moment):
    return lambda: moment


def new_batch(product, number="LOT-1", **fields):
    return BatchCreate(product_id=product.id, batch_number=number, quantity=10, **fields)


def test_days_until_expiry_rounds_down():
    assert days_until_expiry(datetime(2024, 6, 1), datetime(2024, 5, 12)) == 20
    assert days_until_expiry(datetime(2024, 6, 1), datetime(2024, 5, 12, 0, 0, 1)) == 19
    assert days_until_expiry(datetime(2024, 6, 1), datetime(2024, 6, 1, 6)) == -1


def test_batch_twenty_days_from_expiry_raises_expiring_soon(db, user, product):
    service = BatchService(db, fixed(EXPIRES - timedelta(days=20)))

    result = service.create_batch(user.id, new_batch(
        product, number="B-20", manufactured_at=datetime(2024, 1, 1), expires_at=EXPIRES,
    ))

    assert result.success
    alert = db.query(StockAlert).one()
    assert alert.type == AlertType.EXPIRING_SOON
    assert alert.current_value == 20
    assert alert.threshold is None
    assert alert.message == "Batch B-20 expires in 20 days"


def test_batch_created_after_expiry_raises_expired(db, user, product):
    service = BatchService(db, fixed(EXPIRES + timedelta(days=3)))

    assert service.create_batch(user.id, new_batch(product, number="OLD", expires_at=EXPIRES)).success

    alert = db.query(StockAlert).one()
    assert alert.type == AlertType.EXPIRED
    assert alert.current_value == 0
    assert alert.message == "Batch OLD has expired"


def test_batch_far_from_expiry_raises_nothing(db, user, product):
    service = BatchService(db, fixed(EXPIRES - timedelta(days=90)))

    assert service.create_batch(user.id, new_batch(product, expires_at=EXPIRES)).success
    assert db.query(StockAlert).count() == 0


def test_expiry_must_follow_manufacture(db, user, product, clock):
    result = BatchService(db, clock).create_batch(user.id, new_batch(
        product, manufactured_at=datetime(2024, 6, 1), expires_at=datetime(2024, 6, 1),
    ))

    assert result.error_kind == ErrorKind.VALIDATION
    assert "expires_at" in result.errors
    assert db.query(Batch).count() == 0


def test_batch_for_foreign_product_is_not_found(db, other_user, product, clock):
    result = BatchService(db, clock).create_batch(other_user.id, new_batch(product))

    assert result.error_kind == ErrorKind.NOT_FOUND


def test_received_at_defaults_to_now(db, user, product, clock):
    batch = BatchService(db, clock).create_batch(user.id, new_batch(product)).data

    assert batch.received_at == NOW


def test_sweep_raises_alerts_every_time(db, user, product):
    create = BatchService(db, fixed(NOW - timedelta(days=400)))
    create.create_batch(user.id, new_batch(product, number="SOON", expires_at=NOW + timedelta(days=10)))
    create.create_batch(user.id, new_batch(product, number="GONE", expires_at=NOW - timedelta(days=1)))
    create.create_batch(user.id, new_batch(product, number="LATER", expires_at=NOW + timedelta(days=60)))
    create.create_batch(user.id, new_batch(product, number="UNDATED"))
    assert db.query(StockAlert).count() == 0

    sweep = BatchService(db, fixed(NOW))
    first = sweep.check_expiring_batches(user.id)
    second = sweep.check_expiring_batches(user.id)

    assert first.data == {"expiring_soon": 1, "expired": 1}
    assert second.data == first.data
    assert db.query(StockAlert).filter(StockAlert.type == AlertType.EXPIRING_SOON).count() == 2
    assert db.query(StockAlert).filter(StockAlert.type == AlertType.EXPIRED).count() == 2
    soon = db.query(StockAlert).filter(StockAlert.type == AlertType.EXPIRING_SOON).first()
    assert soon.current_value == 10


def test_sweep_treats_batch_expiring_later_today_as_expired(db, user, product):
    service = BatchService(db, fixed(NOW))
    service.create_batch(user.id, new_batch(product, number="B1", expires_at=NOW + timedelta(hours=6)))

    result = service.check_expiring_batches(user.id)

    assert result.data == {"expiring_soon": 0, "expired": 1}
    alerts = db.query(StockAlert).order_by(StockAlert.id).all()
    assert [(a.type, a.message) for a in alerts] == [
        (AlertType.EXPIRED, "Batch B1 has expired"),
        (AlertType.EXPIRED, "Batch B1 has expired"),
    ]


def test_expiring_and_expired_queries(db, user, product, clock):
    service = BatchService(db, clock)
    service.create_batch(user.id, new_batch(product, number="SOON", expires_at=NOW + timedelta(days=5)))
    service.create_batch(user.id, new_batch(product, number="GONE", expires_at=NOW - timedelta(days=5)))

    assert [b.batch_number for b in service.get_expiring_batches(user.id).data] == ["SOON"]
    assert [b.batch_number for b in service.get_expired_batches(user.id).data] == ["GONE"]
    assert service.get_expiring_batches(user.id, days=2).data == []


def test_update_validates_merged_dates(db, user, product, clock):
    service = BatchService(db, clock)
    batch = service.create_batch(user.id, new_batch(
        product, manufactured_at=datetime(2025, 1, 1), expires_at=datetime(2026, 1, 1),
    )).data

    rejected = service.update_batch(user.id, batch.id, BatchUpdate(expires_at=datetime(2024, 12, 31)))
    accepted = service.update_batch(user.id, batch.id, BatchUpdate(quantity=4, notes="recount"))

    assert rejected.error_kind == ErrorKind.VALIDATION
    assert accepted.success
    db.refresh(batch)
    assert batch.expires_at == datetime(2026, 1, 1)
    assert batch.quantity == 4


def test_delete_batch(db, user, other_user, product, clock):
    service = BatchService(db, clock)
    batch = service.create_batch(user.id, new_batch(product)).data

    assert service.delete_batch(other_user.id, batch.id).error_kind == ErrorKind.NOT_FOUND
    assert service.delete_batch(user.id, batch.id).success
    assert db.query(Batch).count() == 0
