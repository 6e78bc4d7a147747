from datetime import timedelta

import pytest

from models.stock import MovementType
from schemas.sale import SaleCreate, SaleItemCreate
from schemas.stock import StockMovementCreate
from services.analytics import InventoryAnalyticsService
from services.sales import SaleService
from services.stock_ledger import StockLedgerService

from conftest import NOW, create_product


@pytest.fixture
def catalog(db, user):
    return [
        create_product(db, user, name="Cheap", quantity=100, price=1.0, low_stock_at=None),
        create_product(db, user, name="Pricey", quantity=2, price=500.0, low_stock_at=3),
        create_product(db, user, name="Empty", quantity=0, price=20.0, low_stock_at=1),
    ]


def test_current_metrics(db, user, catalog, clock):
    metrics = InventoryAnalyticsService(db, clock).get_current_metrics(user.id).data

    assert metrics["total_products"] == 3
    assert metrics["total_quantity"] == 102
    assert metrics["total_value"] == pytest.approx(1100.0)
    assert metrics["low_stock_count"] == 2
    assert metrics["out_of_stock_count"] == 1
    assert metrics["average_value"] == pytest.approx(1100.0 / 3)


def test_metrics_for_empty_inventory(db, user, clock):
    metrics = InventoryAnalyticsService(db, clock).get_current_metrics(user.id).data

    assert metrics["total_products"] == 0
    assert metrics["average_value"] == 0.0


def test_product_rankings(db, user, catalog, clock):
    service = InventoryAnalyticsService(db, clock)

    assert [p["name"] for p in service.get_top_products(user.id, limit=2).data] == ["Pricey", "Cheap"]
    assert [p.name for p in service.get_low_stock_products(user.id).data] == ["Empty", "Pricey"]
    assert [p.name for p in service.get_out_of_stock_products(user.id).data] == ["Empty"]


def test_movement_summary_net_change(db, user, catalog, clock):
    cheap = catalog[0]
    ledger = StockLedgerService(db, clock)
    for movement_type, quantity in [
        (MovementType.IN, 10), (MovementType.OUT, 4), (MovementType.RETURN, 1), (MovementType.ADJUSTMENT, 100),
    ]:
        ledger.record_movement(user.id, user.id, StockMovementCreate(
            product_id=cheap.id, type=movement_type, quantity=quantity,
        ))
    old = InventoryAnalyticsService(db, lambda: NOW + timedelta(days=60))

    summary = InventoryAnalyticsService(db, clock).get_stock_movement_summary(user.id, days=30).data

    # adjustment from 107 down to 100 is logged with magnitude 7
    assert summary["total_in"] == 10
    assert summary["total_out"] == 4
    assert summary["total_returns"] == 1
    assert summary["total_adjustments"] == 7
    assert summary["net_change"] == 10 + 1 - 4 + 7
    assert old.get_stock_movement_summary(user.id, days=30).data["net_change"] == 0


def test_top_selling_products(db, user, catalog, clock):
    cheap, pricey, _ = catalog
    sales = SaleService(db, clock)
    sales.create_sale(user.id, SaleCreate(items=[SaleItemCreate(product_id=cheap.id, quantity=5, price=1.0)]))
    sales.create_sale(user.id, SaleCreate(items=[
        SaleItemCreate(product_id=cheap.id, quantity=3, price=1.0),
        SaleItemCreate(product_id=pricey.id, quantity=1, price=500.0),
    ]))

    top = InventoryAnalyticsService(db, clock).get_top_selling_products(user.id).data

    assert [(t["name"], t["units_sold"]) for t in top] == [("Cheap", 8), ("Pricey", 1)]
    assert top[1]["revenue"] == pytest.approx(500.0)


def test_snapshots(db, user, catalog):
    first = InventoryAnalyticsService(db, lambda: NOW - timedelta(days=1)).create_snapshot(user.id).data
    second = InventoryAnalyticsService(db, lambda: NOW).create_snapshot(user.id).data
    service = InventoryAnalyticsService(db, lambda: NOW)

    assert first.total_value == pytest.approx(1100.0)
    assert service.get_latest_snapshot(user.id).data.id == second.id
    assert [s.id for s in service.get_snapshot_history(user.id).data] == [second.id, first.id]
    trend = service.get_value_trend(user.id, NOW - timedelta(days=2), NOW - timedelta(hours=1)).data
    assert [s.id for s in trend] == [first.id]
