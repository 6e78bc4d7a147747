from models.alert import StockAlert
from models.batch import Batch
from models.product import Category, Product, Tag, product_tags
from models.sale import SaleItem
from models.stock import MovementType, StockMovement
from models.log import Log
from schemas.batch import BatchCreate
from schemas.product import CategoryCreate, ProductCreate, ProductUpdate, TagCreate
from schemas.sale import SaleCreate, SaleItemCreate
from schemas.stock import StockMovementCreate
from services.batches import BatchService
from services.products import ProductService
from services.results import ErrorKind
from services.sales import SaleService
from services.stock_ledger import StockLedgerService


def new_product(**fields):
    values = {"name": "Router AX3000", "manufacturer": "TP-Link", "price": 79.0, "low_stock_at": 2}
    values.update(fields)
    return ProductCreate(**values)


def test_initial_quantity_is_booked_through_the_ledger(db, user, clock):
    result = ProductService(db, clock).create_product(user.id, user.id, new_product(quantity=12))

    assert result.success
    product = result.data
    assert product.quantity == 12
    entry = db.query(StockMovement).one()
    assert entry.type == MovementType.IN
    assert (entry.previous_qty, entry.new_qty, entry.quantity) == (0, 12, 12)
    assert entry.reason == "Initial stock"


def test_product_without_stock_has_no_ledger_entry(db, user, clock):
    result = ProductService(db, clock).create_product(user.id, user.id, new_product())

    assert result.success
    assert result.data.quantity == 0
    assert db.query(StockMovement).count() == 0


def test_create_with_foreign_category_is_not_found(db, user, other_user, clock):
    service = ProductService(db, clock)
    category = service.create_category(other_user.id, CategoryCreate(name="Networking")).data

    result = service.create_product(user.id, user.id, new_product(category_id=category.id))

    assert result.error_kind == ErrorKind.NOT_FOUND
    assert db.query(Product).count() == 0


def test_update_never_touches_quantity(db, user, product, clock):
    result = ProductService(db, clock).update_product(user.id, product.id, ProductUpdate(price=3.75, location="A-01"))

    assert result.success
    db.refresh(product)
    assert (product.price, product.location, product.quantity) == (3.75, "A-01", 10)


def test_adjust_stock_writes_an_adjustment_entry(db, user, product, clock):
    result = ProductService(db, clock).adjust_stock(user.id, user.id, product.id, -3)

    assert result.success
    assert result.message == "Stock adjusted successfully. New quantity: 7"
    entry = db.query(StockMovement).one()
    assert entry.type == MovementType.ADJUSTMENT
    assert (entry.previous_qty, entry.new_qty, entry.quantity) == (10, 7, 3)


def test_adjust_stock_below_zero_is_insufficient(db, user, product, clock):
    result = ProductService(db, clock).adjust_stock(user.id, user.id, product.id, -11)

    assert result.error_kind == ErrorKind.INSUFFICIENT_STOCK
    db.refresh(product)
    assert product.quantity == 10
    assert db.query(StockMovement).count() == 0


def test_adjust_stock_rejects_non_numeric_values(db, user, product, clock):
    service = ProductService(db, clock)

    for value in ("abc", None, 1.5, float("nan"), True):
        assert service.adjust_stock(user.id, user.id, product.id, value).error_kind == ErrorKind.VALIDATION


def test_list_search_and_pagination(db, user, clock):
    service = ProductService(db, clock)
    for name in ("Alpha switch", "Beta switch", "Gamma cable"):
        service.create_product(user.id, user.id, new_product(name=name))

    found = service.list_products(user.id, search="switch").data
    page = service.list_products(user.id, page=2, page_size=2).data

    assert [p.name for p in found["items"]] == ["Alpha switch", "Beta switch"]
    assert page["total"] == 3
    assert [p.name for p in page["items"]] == ["Gamma cable"]


def test_products_are_scoped_to_owner(db, user, other_user, product, clock):
    service = ProductService(db, clock)

    assert service.get_product(other_user.id, product.id).error_kind == ErrorKind.NOT_FOUND
    assert service.delete_product(other_user.id, product.id).error_kind == ErrorKind.NOT_FOUND
    assert service.list_products(other_user.id).data["total"] == 0


def test_categories(db, user, clock):
    service = ProductService(db, clock)
    category = service.create_category(user.id, CategoryCreate(name="Networking")).data
    product = service.create_product(user.id, user.id, new_product(category_id=category.id)).data

    assert service.create_category(user.id, CategoryCreate(name="Networking")).error_kind == ErrorKind.CONFLICT
    assert [c.name for c in service.list_categories(user.id).data] == ["Networking"]
    assert service.delete_category(user.id, category.id).success
    db.refresh(product)
    assert product.category_id is None
    assert db.query(Category).count() == 0


def test_writes_are_recorded_in_activity_log(db, user, clock):
    product = ProductService(db, clock).create_product(user.id, user.id, new_product()).data

    entry = db.query(Log).filter(Log.resource == "products").one()
    assert (entry.action, entry.entity_id, entry.status) == ("CREATE", product.id, "SUCCESS")


def test_deleted_product_takes_its_ledger_alerts_and_batches_along(db, user, clock):
    service = ProductService(db, clock)
    ledger = StockLedgerService(db, clock)
    old_id = service.create_product(user.id, user.id, new_product(quantity=5)).data.id
    assert ledger.record_movement(user.id, user.id, StockMovementCreate(
        product_id=old_id, type=MovementType.OUT, quantity=5,
    )).success
    assert BatchService(db, clock).create_batch(user.id, BatchCreate(
        product_id=old_id, batch_number="LOT-1", quantity=5,
    )).success
    assert db.query(StockAlert).count() == 1

    assert service.delete_product(user.id, old_id).success

    assert db.query(StockMovement).count() == 0
    assert db.query(StockAlert).count() == 0
    assert db.query(Batch).count() == 0

    fresh = service.create_product(user.id, user.id, new_product(name="Switch 8p")).data
    assert ledger.get_product_history(user.id, fresh.id).data == []
    assert db.query(StockAlert).filter(StockAlert.product_id == fresh.id).count() == 0


def test_sale_lines_outlive_a_deleted_product(db, user, clock):
    service = ProductService(db, clock)
    product = service.create_product(user.id, user.id, new_product(quantity=4)).data
    assert SaleService(db, clock).create_sale(user.id, SaleCreate(
        items=[SaleItemCreate(product_id=product.id, quantity=1, price=79.0)],
    )).success

    assert service.delete_product(user.id, product.id).success

    item = db.query(SaleItem).one()
    db.refresh(item)
    assert item.product_id is None
    assert item.product_name == "Router AX3000"


def test_tags_crud(db, user, other_user, clock):
    service = ProductService(db, clock)
    tag = service.create_tag(user.id, TagCreate(name="  wifi ")).data

    assert tag.name == "wifi"
    assert service.create_tag(user.id, TagCreate(name="wifi")).error_kind == ErrorKind.CONFLICT
    assert service.create_tag(user.id, TagCreate(name="   ")).error_kind == ErrorKind.VALIDATION
    assert service.create_tag(other_user.id, TagCreate(name="wifi")).success

    other = service.create_tag(user.id, TagCreate(name="outdoor")).data
    assert service.update_tag(user.id, other.id, TagCreate(name="wifi")).error_kind == ErrorKind.CONFLICT
    assert service.update_tag(user.id, tag.id, TagCreate(name="wifi")).success
    renamed = service.update_tag(user.id, tag.id, TagCreate(name="wireless"))
    assert renamed.message == "Tag renamed successfully."

    assert [t.name for t in service.list_tags(user.id).data] == ["outdoor", "wireless"]
    assert service.delete_tag(other_user.id, tag.id).error_kind == ErrorKind.NOT_FOUND


def test_products_are_tagged_and_filtered_by_tag(db, user, clock):
    service = ProductService(db, clock)
    wifi = service.create_tag(user.id, TagCreate(name="wifi")).data
    outdoor = service.create_tag(user.id, TagCreate(name="outdoor")).data
    router = service.create_product(user.id, user.id, new_product(tag_ids=[wifi.id])).data
    service.create_product(user.id, user.id, new_product(name="Patch cable"))

    assert [t.name for t in router.tags] == ["wifi"]
    assert [p.name for p in service.list_products(user.id, tag_id=wifi.id).data["items"]] == ["Router AX3000"]

    assert service.update_product(user.id, router.id, ProductUpdate(tag_ids=[outdoor.id])).success
    assert service.list_products(user.id, tag_id=wifi.id).data["total"] == 0
    assert service.update_product(user.id, router.id, ProductUpdate(notes="roof")).success
    db.refresh(router)
    assert [t.name for t in router.tags] == ["outdoor"]

    assert service.delete_tag(user.id, outdoor.id).success
    db.refresh(router)
    assert router.tags == []
    assert db.query(product_tags).count() == 0


def test_foreign_tags_are_rejected(db, user, other_user, clock):
    service = ProductService(db, clock)
    foreign = service.create_tag(other_user.id, TagCreate(name="wifi")).data

    result = service.create_product(user.id, user.id, new_product(tag_ids=[foreign.id]))

    assert result.error_kind == ErrorKind.NOT_FOUND
    assert result.errors == {"tag_ids": ["One or more tags not found"]}
    assert db.query(Product).count() == 0
    assert db.query(Tag).count() == 1
