import os
from datetime import datetime
from typing import Optional

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('ACCESS_TOKEN_SECRET', 'test-access-secret')
os.environ.setdefault('REFRESH_TOKEN_SECRET', 'test-refresh-secret')
os.environ.setdefault('SMTP_HOST', '')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from database import Base, get_db  # noqa: E402
from main import app  # noqa: E402
from models.users import ROLE_ADMIN, ROLE_USER, User  # noqa: E402
from utils.hashing import get_password_hash  # noqa: E402
from utils.tokenJWT import create_access_token  # noqa: E402


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    # Auth cookies are marked secure, so talk https to keep them in the jar
    with TestClient(app, base_url='https://testserver', raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make_user(
        email: str = 'user@mail.com',
        password: str = 'secret-pass',
        fullname: str = 'Test User',
        roles=(ROLE_USER,),
        created_at: Optional[datetime] = None,
        deleted_at: Optional[datetime] = None,
    ) -> User:
        user = User(
            fullname=fullname,
            email=email,
            password_hash=get_password_hash(password),
            role_names=list(roles),
        )
        if created_at is not None:
            user.created_at = created_at
        user.deleted_at = deleted_at
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


def bearer(user: User) -> dict:
    return {'Authorization': f'Bearer {create_access_token(user)}'}


@pytest.fixture
def admin_headers(make_user) -> dict:
    admin = make_user(email='admin@mail.com', fullname='Admin', roles=(ROLE_USER, ROLE_ADMIN))
    return bearer(admin)
