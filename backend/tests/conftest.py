"""
YouthLink - Test Configuration and Fixtures
"""
import os
from datetime import datetime, timedelta
from typing import Generator
from uuid import uuid4

# Configure before any youthlink import reads the cached settings
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-testing"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("STATSIG_SERVER_SECRET", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from youthlink.core.security import create_user_token, get_password_hash
from youthlink.db.session import Base, get_db
from youthlink.main import app
from youthlink.models import (
    Opportunity,
    User,
    UserRole,
    Verification,
    VerificationStatus,
    YouthCategory,
)

PASSWORD = "password123"

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=test_engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh schema per test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: Session):
    """Factory for users; youths get a Verification (PENDING unless told otherwise)."""

    def _make(
        role: UserRole = UserRole.YOUTH,
        verification_status: VerificationStatus | None = VerificationStatus.PENDING,
        **fields,
    ) -> User:
        fields.setdefault("email", f"{uuid4().hex[:10]}@youthlink.org")
        fields.setdefault("first_name", role.value.title())
        user = User(role=role, password_hash=get_password_hash(PASSWORD), **fields)
        if role == UserRole.YOUTH and verification_status is not None:
            user.verification = Verification(status=verification_status)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_opportunity(db_session: Session):
    def _make(donor: User, **fields) -> Opportunity:
        fields.setdefault("title", "Scholarship")
        fields.setdefault("description", "Full tuition scholarship")
        fields.setdefault("categories", [YouthCategory.REFUGEE.value])
        fields.setdefault("countries", ["Kenya"])
        fields.setdefault("is_active", True)
        opportunity = Opportunity(donor_id=donor.id, **fields)
        db_session.add(opportunity)
        db_session.commit()
        db_session.refresh(opportunity)
        return opportunity

    return _make


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def admin(make_user) -> User:
    return make_user(UserRole.ADMIN)


@pytest.fixture
def donor(make_user) -> User:
    return make_user(UserRole.DONOR, organization_name="Hope Fund")


@pytest.fixture
def youth(make_user) -> User:
    return make_user(
        UserRole.YOUTH,
        category=YouthCategory.REFUGEE,
        country="Kenya",
        camp="Kakuma",
        community="Kalobeyei",
    )


@pytest.fixture
def verified_youth(make_user) -> User:
    return make_user(
        UserRole.YOUTH,
        verification_status=VerificationStatus.VERIFIED,
        category=YouthCategory.REFUGEE,
        country="Kenya",
    )


def ts(**delta) -> datetime:
    """Naive UTC timestamp offset from now."""
    return datetime.utcnow() + timedelta(**delta)
