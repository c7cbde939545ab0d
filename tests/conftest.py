import os
import uuid

# settings are read at import time, so the environment goes first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_default.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from app.core.database import Base, get_db
from app.core.security import get_password_hash
from app.main import app
from app.models.gig import Gig
from app.models.order import Order, OrderStatusEnum
from app.models.user import User, UserRoleEnum

PASSWORD = "password123"
ADMIN_EMAIL = "admin@example.com"


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def sync_engine(db_path):
    # schema is created synchronously, outside any event loop
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sync_engine, db_path):
    # NullPool: every session gets a fresh connection on the current loop
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def client(session_factory):
    async def override_get_db():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# --- Seeding ---

def _new_user(name, role, email=None):
    return User(
        user_id=str(uuid.uuid4()),
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:6]}@example.com",
        password_hash=get_password_hash(PASSWORD),
        role=role,
    )


@pytest.fixture
def make_user(session):
    """Insert a user straight into the database (service tests)"""
    async def _make(name="User", role=UserRoleEnum.client, email=None):
        user = _new_user(name, role, email)
        session.add(user)
        await session.commit()
        return user
    return _make


@pytest.fixture
def make_order(session):
    async def _make(buyer, seller, status=OrderStatusEnum.payment_confirmed, **fields):
        order = Order(
            gig_id=str(uuid.uuid4()),
            gig_title="Logo design",
            buyer_id=buyer.user_id,
            buyer_name=buyer.name,
            seller_id=seller.user_id,
            seller_name=seller.name,
            amount=50,
            status=status,
            **fields,
        )
        session.add(order)
        await session.commit()
        return order
    return _make


@pytest.fixture
def seed(sync_engine):
    """Insert rows through a plain sync session (API tests)"""
    def _seed(*rows):
        with Session(sync_engine, expire_on_commit=False) as s:
            s.add_all(rows)
            s.commit()
        return rows
    return _seed


# --- API helpers ---

def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    def _register(name, role="client", email=None):
        email = email or f"{name.lower()}@example.com"
        res = client.post("/auth/register", json={
            "name": name, "email": email, "password": PASSWORD, "role": role,
        })
        assert res.status_code == 201, res.text
        data = res.json()["data"]
        return data["token"], data["user"]
    return _register


@pytest.fixture
def admin_token(client, seed):
    seed(_new_user("Admin", UserRoleEnum.admin, email=ADMIN_EMAIL))
    res = client.post("/admin/login", json={"email": ADMIN_EMAIL, "password": PASSWORD})
    assert res.status_code == 200, res.text
    return res.json()["data"]["token"]


@pytest.fixture
def parties(register):
    """A registered client and freelancer: ((buyer_token, buyer), (seller_token, seller))"""
    return register("Alice", "client"), register("Bob", "freelancer")


@pytest.fixture
def gig(client, parties):
    _, (seller_token, _) = parties
    res = client.post("/gigs", json={"title": "Logo design", "price": 50, "deliveryTime": 3},
                      headers=auth(seller_token))
    assert res.status_code == 201, res.text
    return res.json()["data"]
