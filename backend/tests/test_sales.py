from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from models.alert import AlertType, StockAlert
from models.product import Product
from models.sale import Sale, SaleItem
from models.stock import StockMovement
from repositories.sales import SaleRepository
from schemas.sale import SaleCreate, SaleItemCreate
from services.results import ErrorKind
from services.sales import SaleService

from conftest import NOW, create_product


def cart(*lines, **fields):
    return SaleCreate(
        items=[SaleItemCreate(product_id=p.id, quantity=q, price=price, **extra) for p, q, price, extra in lines],
        **fields,
    )


def line(product, quantity, price=10.0, **extra):
    return (product, quantity, price, extra)


def test_sale_computes_totals_and_decrements_stock(db, user, product, clock):
    gadget = create_product(db, user, name="Gadget", quantity=3, low_stock_at=None, price=40)

    result = SaleService(db, clock).create_sale(user.id, cart(
        line(product, 2, 10.0, discount=1.0),
        line(gadget, 1, 40.0),
        overall_discount=9.0,
        tax_rate=10,
        customer="Walk-in",
    ))

    assert result.success
    assert result.data["invoice_number"] == "INV-20250310-0001"
    sale = db.get(Sale, result.data["sale_id"])
    # lines: 20 - 1 = 19 and 40; subtotal 59; after discount 50; tax 5
    assert sale.subtotal == pytest.approx(59.0)
    assert sale.discount == pytest.approx(9.0)
    assert sale.tax == pytest.approx(5.0)
    assert sale.total_amount == pytest.approx(55.0)
    assert sale.status == "completed"
    assert sale.created_at == NOW

    items = db.query(SaleItem).order_by(SaleItem.id).all()
    assert [(i.product_name, i.subtotal, i.total_price) for i in items] == [("Widget", 20.0, 19.0), ("Gadget", 40.0, 40.0)]
    db.refresh(product)
    db.refresh(gadget)
    assert (product.quantity, gadget.quantity) == (8, 2)
    assert db.query(StockMovement).count() == 0


def test_insufficient_second_line_aborts_whole_sale(db, user, product, clock):
    scarce = create_product(db, user, name="Scarce", quantity=1)

    result = SaleService(db, clock).create_sale(user.id, cart(line(product, 2), line(scarce, 2)))

    assert result.error_kind == ErrorKind.INSUFFICIENT_STOCK
    db.refresh(product)
    db.refresh(scarce)
    assert (product.quantity, scarce.quantity) == (10, 1)
    assert db.query(Sale).count() == 0
    assert db.query(SaleItem).count() == 0


def test_repeated_product_lines_are_checked_together(db, user, product, clock):
    result = SaleService(db, clock).create_sale(user.id, cart(line(product, 6), line(product, 6)))

    assert result.error_kind == ErrorKind.INSUFFICIENT_STOCK
    db.refresh(product)
    assert product.quantity == 10


def test_empty_cart_is_rejected(db, user, clock):
    result = SaleService(db, clock).create_sale(user.id, SaleCreate(items=[]))

    assert result.error_kind == ErrorKind.VALIDATION
    assert result.message == "No items in sale"


def test_unknown_product_is_not_found(db, user, other_user, product, clock):
    result = SaleService(db, clock).create_sale(other_user.id, cart(line(product, 1)))

    assert result.error_kind == ErrorKind.NOT_FOUND


def test_sale_runs_stock_alert_check(db, user, product, clock):
    SaleService(db, clock).create_sale(user.id, cart(line(product, 7)))

    alert = db.query(StockAlert).one()
    assert alert.type == AlertType.LOW_STOCK
    assert alert.current_value == 3


def test_invoice_numbers_increase_within_a_day(db, user, clock):
    product = create_product(db, user, quantity=100, low_stock_at=None)
    service = SaleService(db, clock)

    numbers = [service.create_sale(user.id, cart(line(product, 1))).data["invoice_number"] for _ in range(5)]

    suffixes = [int(n.rsplit("-", 1)[-1]) for n in numbers]
    assert len(set(numbers)) == 5
    assert suffixes == sorted(suffixes)
    assert suffixes == [1, 2, 3, 4, 5]


def test_invoice_numbering_restarts_each_day(db, user):
    product = create_product(db, user, quantity=100, low_stock_at=None)

    first = SaleService(db, lambda: NOW).create_sale(user.id, cart(line(product, 1)))
    next_day = SaleService(db, lambda: NOW + timedelta(days=1)).create_sale(user.id, cart(line(product, 1)))

    assert first.data["invoice_number"] == "INV-20250310-0001"
    assert next_day.data["invoice_number"] == "INV-20250311-0001"


def test_counter_continues_after_existing_invoices(db, user, clock):
    product = create_product(db, user, quantity=100, low_stock_at=None)
    db.add(Sale(user_id=user.id, invoice_number="INV-20250310-0007", subtotal=1, total_amount=1, created_at=NOW))
    db.commit()

    result = SaleService(db, clock).create_sale(user.id, cart(line(product, 1)))

    assert result.data["invoice_number"] == "INV-20250310-0008"


def test_invoice_collision_retries_then_conflicts(db, user, product, clock, monkeypatch):
    def colliding(self, prefix, date_key):
        raise IntegrityError("INSERT INTO invoice_sequences", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(SaleRepository, "next_invoice_number", colliding)

    result = SaleService(db, clock).create_sale(user.id, cart(line(product, 1)))

    assert result.error_kind == ErrorKind.CONFLICT
    assert db.query(Sale).count() == 0
    assert db.get(Product, product.id).quantity == 10


def test_receipt_and_recent_sales(db, user, product, clock):
    service = SaleService(db, clock)
    created = service.create_sale(user.id, cart(line(product, 2, 4.5), payment_method="cash")).data

    receipt = service.get_sale_details(user.id, created["sale_id"]).data
    recent = service.get_recent_sales(user.id).data

    assert receipt.invoice_number == created["invoice_number"]
    assert receipt.items[0].quantity == 2
    assert receipt.items[0].unit_price == 4.5
    assert [s.id for s in recent] == [created["sale_id"]]


def test_sales_analytics_groups_by_day(db, user, clock):
    product = create_product(db, user, quantity=100, low_stock_at=None)
    SaleService(db, lambda: datetime(2025, 3, 8, 9)).create_sale(user.id, cart(line(product, 1, 10.0)))
    SaleService(db, lambda: datetime(2025, 3, 8, 15)).create_sale(user.id, cart(line(product, 1, 30.0)))
    SaleService(db, lambda: datetime(2025, 3, 9, 10)).create_sale(user.id, cart(line(product, 2, 10.0)))
    SaleService(db, lambda: datetime(2024, 12, 1)).create_sale(user.id, cart(line(product, 1, 99.0)))

    service = SaleService(db, clock)
    analytics = service.get_sales_analytics(user.id, "7d").data

    assert analytics.total_orders == 3
    assert analytics.total_revenue == pytest.approx(60.0)
    assert analytics.average_order_value == pytest.approx(20.0)
    assert [(p.date, p.amount) for p in analytics.chart_data] == [("2025-03-08", 40.0), ("2025-03-09", 20.0)]
    assert service.get_sales_analytics(user.id, "1y").error_kind == ErrorKind.VALIDATION
