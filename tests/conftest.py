"""Shared fixtures: an in-memory Mongo database and a mocked payment gateway."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import mongomock
import pytest
from fastapi.testclient import TestClient

import main
from database import create_document, ensure_indexes, get_db, parse_object_id
from payments import get_gateway
from schemas import ADMIN, CUSTOMER, Category, Product, User
from security import create_token, hash_password

PASSWORD = "password123"


@pytest.fixture
def db():
    database = mongomock.MongoClient().storefront_test
    ensure_indexes(database)
    return database


@pytest.fixture
def gateway():
    return MagicMock()


@pytest.fixture
def client(db, gateway):
    main.app.dependency_overrides[get_db] = lambda: db
    main.app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def make_user(db, email, role=CUSTOMER, password=PASSWORD, **fields):
    user = User(
        name=fields.get("name", "John Doe"),
        email=email,
        password_hash=hash_password(password),
        phone=fields.get("phone", "12345678"),
        address=fields.get("address", "123 Main St"),
        answer=fields.get("answer", "Petname"),
        role=role,
    )
    uid = create_document(db, "user", user)
    return db["user"].find_one({"_id": parse_object_id(uid)})


def make_category(db, name, slug=None):
    cid = create_document(db, "category", Category(name=name, slug=slug or name.lower()))
    return db["category"].find_one({"_id": parse_object_id(cid)})


def make_product(db, name, category_id, price=100, quantity=10, age_minutes=0, **fields):
    """Insert a product whose created_at lies `age_minutes` in the past."""
    product = Product(
        name=name,
        slug=fields.get("slug", name.lower().replace(" ", "-")),
        description=fields.get("description", f"{name} description"),
        price=price,
        category=category_id,
        quantity=quantity,
        shipping=fields.get("shipping"),
        photo=fields.get("photo"),
    )
    doc = product.model_dump()
    created = datetime.now(timezone.utc) - timedelta(minutes=age_minutes)
    doc["created_at"] = created
    doc["updated_at"] = created
    result = db["product"].insert_one(doc)
    return db["product"].find_one({"_id": result.inserted_id})


@pytest.fixture
def customer(db):
    return make_user(db, "john@shop.com")


@pytest.fixture
def admin(db):
    return make_user(db, "admin@shop.com", role=ADMIN, name="Admin")


@pytest.fixture
def customer_headers(customer):
    # bare token, as the browser client sends it
    return {"Authorization": create_token({"id": str(customer["_id"])})}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_token({'id': str(admin['_id'])})}"}


@pytest.fixture
def electronics(db):
    return make_category(db, "Electronics")
