import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret-key-with-enough-length-for-hs256')
os.environ.setdefault('BCRYPT_ROUNDS', '4')
os.environ.setdefault('ADMIN_EMAIL', 'admin@bookstore.test')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backend.auth.passwords import hash_password  # noqa: E402
from backend.auth.sessions import Identity, issue_token  # noqa: E402
from backend.database import Base, get_db  # noqa: E402
from backend.main import app  # noqa: E402
from backend.models.book import Book  # noqa: E402
from backend.models.user import User, UserRole  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email='reader@example.com', password='secret123', role=UserRole.USER, name='Reader'):
        user = User(
            email=email,
            name=name,
            hashed_password=hash_password(password) if password else None,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_book(db):
    def _make_book(title, **fields):
        book = Book(title=title, **fields)
        db.add(book)
        db.commit()
        db.refresh(book)
        return book

    return _make_book


@pytest.fixture
def admin_token(make_user) -> str:
    admin = make_user(email='admin@bookstore.test', role=UserRole.ADMIN, name='Admin')
    return issue_token(Identity.from_user(admin))


@pytest.fixture
def user_token(make_user) -> str:
    reader = make_user()
    return issue_token(Identity.from_user(reader))


@pytest.fixture
def auth_header():
    def _auth_header(token: str) -> dict:
        return {'Authorization': f'Bearer {token}'}

    return _auth_header
