import os
import sys
from datetime import datetime

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

# Must be set before config/database are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, enable_sqlite_foreign_keys, get_db
import models.users, models.product, models.stock, models.alert  # noqa: E401,F401
import models.batch, models.supplier, models.sale, models.inventory_value, models.log  # noqa: E401,F401
from models.product import Product
from models.users import User
from utils.tokenJWT import create_access_token

NOW = datetime(2025, 3, 10, 12, 0, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def clock():
    return lambda: NOW


def create_user(db, email="owner@example.com"):
    user = User(email=email, name=email.split("@")[0])
    db.add(user)
    db.commit()
    return user


def create_product(db, user, **fields):
    values = {"name": "Widget", "manufacturer": "Acme", "quantity": 10, "low_stock_at": 5, "price": 2.5}
    values.update(fields)
    product = Product(user_id=user.id, **values)
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def user(db):
    return create_user(db)


@pytest.fixture
def other_user(db):
    return create_user(db, email="intruder@example.com")


@pytest.fixture
def product(db, user):
    return create_product(db, user)


@pytest.fixture
def client(db):
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user):
    token = create_access_token({"sub": user.email})
    return {"Authorization": f"Bearer {token}"}
