import os

# Settings are read once, so the test environment must be in place before app imports
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["API_PREFIX"] = "/api/v1"

import pytest
from fastapi.testclient import TestClient

import utils.hashing
from database import Base, SessionLocal, engine
from main import app
from models.product import Product
from models.users import Role, User
from utils.hashing import get_password_hash

# Keep bcrypt fast under test
utils.hashing.BCRYPT_ROUNDS = 4

API = "/api/v1"
PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, email="alice@example.com", name="Alice", password=PASSWORD):
    res = client.post(f"{API}/auth/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.text
    body = res.json()
    return body["user"], body["token"]


def create_user(email, role=Role.CUSTOMER, password=PASSWORD, name="Someone", is_active=True):
    with SessionLocal() as db:
        user = User(name=name, email=email, password_hash=get_password_hash(password), role=role, is_active=is_active)
        db.add(user)
        db.commit()
        return user.id


def login(client, email, password=PASSWORD):
    res = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["token"]


def create_product(name="Keyboard", price=50.0, stock=10, category="Electronics"):
    with SessionLocal() as db:
        product = Product(name=name, category=category, price=price, stock_quantity=stock, images=[])
        db.add(product)
        db.commit()
        return product.id


@pytest.fixture
def admin_token(client):
    create_user("admin@example.com", role=Role.ADMIN, name="Admin")
    return login(client, "admin@example.com")


@pytest.fixture
def customer(client):
    user, token = register(client)
    return user, token


@pytest.fixture
def product_id():
    return create_product()
