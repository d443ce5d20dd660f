"""
Account and profile operations.

- register / authenticate: account creation and password login
- get_profile / update_profile: the caller's own profile
- list_documents / get_verification: the caller's verification material
- list_users: paginated admin listing

Registering a YOUTH also opens its Verification in PENDING state, which is
what puts the youth on the admin review queue.
"""

from __future__ import annotations

import logging

from sqlalchemy import asc, desc, func
from sqlalchemy.orm import Session, selectinload

from youthlink import models, schemas
from youthlink.config import get_settings
from youthlink.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from youthlink.core.security import get_password_hash, verify_password
from youthlink.services.statsig_client import log_backend_event

logger = logging.getLogger(__name__)

# Columns the admin listing may be sorted by
SORTABLE_USER_COLUMNS = {
    "created_at": models.User.created_at,
    "updated_at": models.User.updated_at,
    "email": models.User.email,
    "first_name": models.User.first_name,
    "last_name": models.User.last_name,
    "role": models.User.role,
    "country": models.User.country,
    "camp": models.User.camp,
}


def register(db: Session, payload: schemas.UserRegister) -> models.User:
    email = payload.email.lower()
    existing = db.query(models.User).filter(models.User.email == email).first()
    if existing:
        raise ConflictError("A user with this email already exists")

    data = payload.model_dump(exclude={"email", "password", "role"})
    user = models.User(
        email=email,
        password_hash=get_password_hash(payload.password),
        role=payload.role,
        **data,
    )
    db.add(user)

    if user.role == models.UserRole.YOUTH:
        user.verification = models.Verification(status=models.VerificationStatus.PENDING)

    db.commit()
    db.refresh(user)
    logger.info("Registered %s user %s", user.role.value, user.id)
    log_backend_event("user_registered", user_id=user.id, role=user.role.value)
    return user


def authenticate(db: Session, email: str, password: str) -> models.User:
    user = db.query(models.User).filter(models.User.email == email.lower()).first()
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    return user


def get_profile(db: Session, user_id: str) -> models.User:
    user = db.get(models.User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_profile(db: Session, user_id: str, payload: schemas.ProfileUpdate) -> models.User:
    user = get_profile(db, user_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def list_documents(db: Session, user_id: str) -> list[models.Document]:
    return (
        db.query(models.Document)
        .filter(models.Document.user_id == user_id)
        .order_by(models.Document.uploaded_at.desc())
        .all()
    )


def get_verification(db: Session, user_id: str) -> models.Verification | None:
    return (
        db.query(models.Verification)
        .options(
            selectinload(models.Verification.admin),
            selectinload(models.Verification.field_agent),
            selectinload(models.Verification.field_visits),
        )
        .filter(models.Verification.user_id == user_id)
        .first()
    )


def list_users(
    db: Session,
    *,
    page: int = 1,
    limit: int | None = None,
    sort: str = "created_at",
    order: str = "desc",
    role: models.UserRole | None = None,
) -> schemas.UserPage:
    settings = get_settings()
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else settings.default_page_size
    limit = min(limit, settings.max_page_size)

    column = SORTABLE_USER_COLUMNS.get(sort, models.User.created_at)
    direction = asc if order == "asc" else desc

    query = db.query(models.User)
    if role:
        query = query.filter(models.User.role == role)

    total = query.with_entities(func.count(models.User.id)).scalar() or 0
    items = (
        query.options(selectinload(models.User.verification))
        .order_by(direction(column), models.User.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return schemas.UserPage(
        total=total,
        page=page,
        limit=limit,
        items=[schemas.UserListItem.model_validate(u) for u in items],
    )
