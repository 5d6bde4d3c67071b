"""Shared pytest fixtures for the storefront API tests.

Every test gets a fresh in-memory Mongo database (mongomock) with the
production indexes, injected into the app through the `get_db` override.
"""
import itertools
import sys
from datetime import timedelta

import mongomock
import pytest
import structlog
from fastapi.testclient import TestClient

from database import create_document, ensure_indexes, get_db, now_utc
from main import app
from schemas import OrderStatus, PaymentStatus, UserRole, slugify
from security import create_access_token, get_password_hash

PASSWORD = "password123"

_sequence = itertools.count(1)


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Send structlog output to stdout so capsys can capture it."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def db():
    database = mongomock.MongoClient()["storefront_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(database, role=UserRole.user, password=PASSWORD, **fields) -> dict:
    n = next(_sequence)
    user = {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": f"user{n}@mail.fr",
        "password": get_password_hash(password),
        "role": UserRole(role).value,
        "isEmailVerified": True,
        "loyaltyPoints": 0,
    }
    user.update(fields)
    create_document(database, "user", user)
    return user


def make_category(database, name=None, parent=None, level=1) -> dict:
    name = name or f"Category {next(_sequence)}"
    category = {"name": name, "slug": slugify(name), "parent": parent, "level": level, "isActive": True}
    create_document(database, "category", category)
    return category


def make_product(database, category, **fields) -> dict:
    name = fields.pop("name", None) or f"Product {next(_sequence)}"
    product = {
        "name": name,
        "slug": slugify(name),
        "description": "",
        "price": 10.0,
        "images": ["/img.jpg"],
        "category": category["_id"],
        "stock": 10,
        "sold": 0,
        "rating": 0,
        "numReviews": 0,
        "featured": False,
    }
    product.update(fields)
    create_document(database, "product", product)
    return product


def make_order(database, user, product, quantity=1, status=OrderStatus.delivered, **fields) -> dict:
    order = {
        "orderNumber": f"TST-{next(_sequence):06d}",
        "user": user["_id"],
        "items": [{"product": product["_id"], "name": product["name"], "price": product["price"], "quantity": quantity}],
        "shippingAddress": {"street": "1 rue de Rivoli", "city": "Paris", "postalCode": "75001", "country": "France"},
        "itemsPrice": product["price"] * quantity,
        "taxPrice": 0,
        "shippingPrice": 0,
        "totalPrice": product["price"] * quantity,
        "loyaltyPoints": 0,
        "status": OrderStatus(status).value,
        "paymentStatus": PaymentStatus.pending.value,
        "sideEffectsApplied": True,
    }
    order.update(fields)
    create_document(database, "order", order)
    return order


def auth_header(user, issued_at=None) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user['_id'], issued_at)}"}


def minutes_ago(n: int):
    return now_utc() - timedelta(minutes=n)


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def admin(db):
    return make_user(db, role=UserRole.admin)


@pytest.fixture
def category(db):
    return make_category(db, "Breakfast")


@pytest.fixture
def product(db, category):
    return make_product(db, category, name="Protein Granola", price=12.0, discountPrice=10.0, stock=10)
