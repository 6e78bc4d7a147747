from models.supplier import ProductSupplier
from schemas.supplier import ProductSupplierLink, ProductSupplierUpdate, SupplierCreate, SupplierUpdate
from services.results import ErrorKind
from services.suppliers import SupplierService

from conftest import create_product


def add_supplier(service, user, name="Northwind", **fields):
    return service.create_supplier(user.id, SupplierCreate(name=name, **fields)).data


def link(service, user, product, supplier, primary=False, cost=5.0):
    return service.link_product_to_supplier(user.id, ProductSupplierLink(
        product_id=product.id, supplier_id=supplier.id, cost_price=cost, is_primary=primary,
    ))


def test_only_one_primary_supplier_per_product(db, user, product, clock):
    service = SupplierService(db, clock)
    first, second = add_supplier(service, user, "First"), add_supplier(service, user, "Second")

    assert link(service, user, product, first, primary=True).success
    assert link(service, user, product, second, primary=True).success

    links = {l.supplier_id: l.is_primary for l in db.query(ProductSupplier).all()}
    assert links == {first.id: False, second.id: True}
    assert service.get_product_suppliers(user.id, product.id).data[0].supplier_id == second.id


def test_primary_flag_does_not_leak_to_other_products(db, user, product, clock):
    other = create_product(db, user, name="Other")
    service = SupplierService(db, clock)
    first, second = add_supplier(service, user, "First"), add_supplier(service, user, "Second")

    link(service, user, other, first, primary=True)
    link(service, user, product, second, primary=True)

    assert db.query(ProductSupplier).filter(ProductSupplier.is_primary.is_(True)).count() == 2


def test_duplicate_link_is_a_conflict(db, user, product, clock):
    service = SupplierService(db, clock)
    supplier = add_supplier(service, user)
    link(service, user, product, supplier)

    result = link(service, user, product, supplier)

    assert result.error_kind == ErrorKind.CONFLICT
    assert db.query(ProductSupplier).count() == 1


def test_promoting_a_link_clears_the_previous_primary(db, user, product, clock):
    service = SupplierService(db, clock)
    first, second = add_supplier(service, user, "First"), add_supplier(service, user, "Second")
    link(service, user, product, first, primary=True)
    secondary = link(service, user, product, second).data

    result = service.update_product_supplier(user.id, secondary.id, ProductSupplierUpdate(is_primary=True, cost_price=4.0))

    assert result.success
    links = {l.supplier_id: (l.is_primary, l.cost_price) for l in db.query(ProductSupplier).all()}
    assert links == {first.id: (False, 5.0), second.id: (True, 4.0)}


def test_unlink_requires_existing_link(db, user, product, clock):
    service = SupplierService(db, clock)
    supplier = add_supplier(service, user)

    assert service.unlink_product_from_supplier(user.id, product.id, supplier.id).error_kind == ErrorKind.NOT_FOUND

    link(service, user, product, supplier)
    assert service.unlink_product_from_supplier(user.id, product.id, supplier.id).success
    assert service.get_supplier_products(user.id, supplier.id).data == []


def test_links_need_owned_product_and_supplier(db, user, other_user, product, clock):
    service = SupplierService(db, clock)
    foreign_supplier = add_supplier(service, other_user, "Theirs")
    own_supplier = add_supplier(service, user, "Mine")

    assert link(service, user, product, foreign_supplier).error_kind == ErrorKind.NOT_FOUND
    assert link(service, other_user, product, foreign_supplier).error_kind == ErrorKind.NOT_FOUND
    assert link(service, user, product, own_supplier).success


def test_supplier_crud_and_active_filter(db, user, other_user, clock):
    service = SupplierService(db, clock)
    kept = add_supplier(service, user, "Kept", email="sales@kept.example")
    paused = add_supplier(service, user, "Paused")

    assert service.update_supplier(user.id, paused.id, SupplierUpdate(active=False)).success
    assert [s.name for s in service.get_active_suppliers(user.id).data] == ["Kept"]
    assert len(service.get_all_suppliers(user.id).data) == 2
    assert service.get_supplier(other_user.id, kept.id).error_kind == ErrorKind.NOT_FOUND
    assert service.delete_supplier(user.id, paused.id).success
    assert [s.id for s in service.get_all_suppliers(user.id).data] == [kept.id]
