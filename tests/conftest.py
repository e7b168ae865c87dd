import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("ADMIN_EMAILS", "owner@bookstore.test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.models  # noqa: F401
from app.database import get_session
from app.main import app as fastapi_app
from app.models.book import Book
from app.models.combo import Combo
from app.models.user import User
from app.utils.hash import hash_password
from app.utils.token import create_access_token

SESSION_HEADER = {"X-Client-Session": "test-session-0001"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def override_get_session():
        return session

    fastapi_app.dependency_overrides[get_session] = override_get_session
    with TestClient(fastapi_app) as test_client:
        test_client.headers.update(SESSION_HEADER)
        yield test_client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def books(session):
    rows = [
        Book(title="Atomic Habits", author="James Clear", description="Tiny changes, remarkable results",
             category="Self Development", price=399, original_price=499),
        Book(title="The Psychology of Money", author="Morgan Housel", description="Timeless lessons on wealth",
             category="Finance", price=299, original_price=399),
        Book(title="Deep Work", author="Cal Newport", description="Rules for focused success",
             category="Self Development", price=350),
        Book(title="Rich Dad Poor Dad", author="Robert Kiyosaki", description="What the rich teach their kids",
             category="Finance", price=250, in_stock=False),
    ]
    for book in rows:
        session.add(book)
    session.commit()
    for book in rows:
        session.refresh(book)
    return rows


@pytest.fixture
def combo(session, books):
    row = Combo(title="Money Starter Pack", book_ids=[books[1].id, books[3].id], price=499, original_price=549)
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def _make_user(session, email, role="user"):
    user = User(email=email, password=hash_password("secret123"), full_name="Test User", role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def user(session):
    return _make_user(session, "reader@bookstore.test")


@pytest.fixture
def admin_user(session):
    return _make_user(session, "boss@bookstore.test", role="admin")


@pytest.fixture
def user_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'user_id': user.id})}"}


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token({'user_id': admin_user.id})}"}
