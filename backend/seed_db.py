import os
import random
import sys
from datetime import timedelta

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from dotenv import load_dotenv

load_dotenv()

from database import SessionLocal, init_db
from models.users import User
from models.stock import MovementType
from schemas.batch import BatchCreate
from schemas.product import CategoryCreate, ProductCreate, TagCreate
from schemas.sale import SaleCreate, SaleItemCreate
from schemas.stock import StockMovementCreate
from schemas.supplier import ProductSupplierLink, SupplierCreate
from services.batches import BatchService
from services.products import ProductService
from services.sales import SaleService
from services.stock_ledger import StockLedgerService
from services.suppliers import SupplierService
from utils.clock import utcnow
from utils.tokenJWT import create_access_token

# Configuration
DEMO_EMAIL = os.getenv("SEED_EMAIL", "demo@stockledger.local")
CATALOG = [
    # (name, manufacturer, category, price, quantity, low_stock_at)
    ("ThinkPad T14 Gen 3", "Lenovo", "Laptops", 899.0, 12, 3),
    ("Latitude 5430", "Dell", "Laptops", 749.0, 4, 5),
    ("MX Master 3S", "Logitech", "Peripherals", 89.0, 40, 10),
    ("K380 Keyboard", "Logitech", "Peripherals", 39.0, 25, 8),
    ("Samsung 980 1TB", "Samsung", "Storage", 79.0, 18, 6),
    ("USB-C Dock WD19", "Dell", "Peripherals", 169.0, 0, 2),
]
# End Configuration


def seed():
    """Creates a demo account with a small catalog, a supplier, batches and a sale."""
    init_db()
    session = SessionLocal()
    try:
        user = session.query(User).filter(User.email == DEMO_EMAIL).first()
        if user:
            print(f"User {DEMO_EMAIL} already exists, skipping seed.")
        else:
            user = User(email=DEMO_EMAIL, name="Demo Store")
            session.add(user)
            session.commit()
            _seed_catalog(session, user.id)

        token = create_access_token({"sub": user.email}, expires_delta=timedelta(days=7))
        print(f"Bearer token for {user.email}:\n{token}")
    finally:
        session.close()


def _seed_catalog(session, user_id):
    products = ProductService(session)
    categories = {}
    for name in sorted({row[2] for row in CATALOG}):
        result = products.create_category(user_id, CategoryCreate(name=name))
        categories[name] = result.data.id
    featured = products.create_tag(user_id, TagCreate(name="featured")).data

    created = []
    for name, manufacturer, category, price, quantity, low_stock_at in CATALOG:
        result = products.create_product(user_id, user_id, ProductCreate(
            name=name, manufacturer=manufacturer, category_id=categories[category],
            price=price, quantity=quantity, low_stock_at=low_stock_at,
            sku=f"{manufacturer[:3].upper()}-{random.randint(1000, 9999)}",
            tag_ids=[featured.id] if price >= 100 else [],
        ))
        if not result.success:
            print(f"Skipping {name}: {result.message}")
            continue
        created.append(result.data)
    print(f"Inserted {len(created)} products.")

    suppliers = SupplierService(session)
    supplier = suppliers.create_supplier(user_id, SupplierCreate(
        name="Northwind IT Distribution", contact_person="Anna Nowak", email="orders@northwind.example",
    )).data
    for product in created:
        suppliers.link_product_to_supplier(user_id, ProductSupplierLink(
            product_id=product.id, supplier_id=supplier.id,
            cost_price=round(product.price * random.uniform(0.6, 0.85), 2),
            lead_time_days=random.randint(2, 14), is_primary=True,
        ))

    # A delivery and a batch nearing expiry for the storage line
    ssd = next(p for p in created if p.name.startswith("Samsung"))
    StockLedgerService(session).record_movement(user_id, user_id, StockMovementCreate(
        product_id=ssd.id, type=MovementType.IN, quantity=10, supplier_id=supplier.id,
        unit_cost=61.5, reference="PO-0001", reason="Restock",
    ))
    now = utcnow()
    BatchService(session).create_batch(user_id, BatchCreate(
        product_id=ssd.id, batch_number="SSD-2401", quantity=10,
        manufactured_at=now - timedelta(days=300), expires_at=now + timedelta(days=20),
    ))

    sale = SaleService(session).create_sale(user_id, SaleCreate(
        items=[
            SaleItemCreate(product_id=created[2].id, quantity=2, price=created[2].price),
            SaleItemCreate(product_id=created[3].id, quantity=1, price=created[3].price, discount=5),
        ],
        customer="Walk-in", payment_method="card", tax_rate=23,
    ))
    print(f"Sale: {sale.message} {sale.data}")


if __name__ == "__main__":
    seed()
