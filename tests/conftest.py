import os

# Point the app at an in-memory store and keep the log file out of test runs
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice import models  # noqa: F401
from backoffice.database import Base, get_db
from backoffice.main import app
from backoffice.sales import schemas as sales_schemas
from backoffice.sales import service as sales_service
from backoffice.stock.products.models import Product
from backoffice.users.models import User


DEFAULT_ACCOUNT = "admin"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


def _add_user(db, username, name, roles):
    user = User(username=username, name=name, roles=roles)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db):
    return _add_user(db, DEFAULT_ACCOUNT, "Administrator", "admin")


@pytest.fixture
def cashier(db):
    return _add_user(db, "Ada", "Ada Obi", "cashier")


@pytest.fixture
def products(db):
    p = Product(name="Product P", sku="P-001", price=50.0, stock=20)
    q = Product(name="Product Q", sku="Q-001", price=80.0, stock=5)
    db.add_all([p, q])
    db.commit()
    db.refresh(p)
    db.refresh(q)
    return {"P": p, "Q": q}


@pytest.fixture
def sale_line(products):
    """Builds a sale/return line dict for one of the seeded products."""

    def _line(key="P", quantity=10, applied_price=50.0, **fields):
        product = products[key]
        line = {
            "product_id": product.id,
            "quantity": quantity,
            "applied_price": applied_price,
            "name": product.name,
            "price": product.price,
            "sku": product.sku,
        }
        line.update(fields)
        return line

    return _line


@pytest.fixture
def new_sale(db, admin, sale_line):
    """Creates a sale through the service; defaults to 10 x P at 50, nothing paid."""

    def _new_sale(items=None, total=500.0, paid=0.0, **fields):
        data = sales_schemas.SaleCreate(
            items=items or [sale_line()],
            sub_total=total,
            discount_amount=0,
            total_amount=total,
            total_amount_paid=paid,
            outstanding_balance=round(total - paid, 2),
            payment_summary=fields.pop("payment_summary", "N/A"),
            staff_id=fields.pop("staff_id", DEFAULT_ACCOUNT),
            **fields,
        )
        return sales_service.create_sale(db, data, default_account=DEFAULT_ACCOUNT)

    return _new_sale


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
