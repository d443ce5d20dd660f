from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from youthlink import models, schemas
from youthlink.core.security import get_current_user, require_roles
from youthlink.db.session import get_db
from youthlink.services import users as user_service

# Caller's own profile lives under /user, the admin directory under /users
router = APIRouter(prefix="/user", tags=["users"])
admin_router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=schemas.UserRead)
def get_profile(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.UserRead:
    return user_service.get_profile(db, user.id)


@router.put("/profile", response_model=schemas.UserRead)
def update_profile(
    payload: schemas.ProfileUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.UserRead:
    return user_service.update_profile(db, user.id, payload)


@router.get("/documents", response_model=list[schemas.DocumentRead])
def get_documents(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[schemas.DocumentRead]:
    return user_service.list_documents(db, user.id)


@router.get("/verification", response_model=schemas.VerificationRead | None)
def get_verification(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.VerificationRead | None:
    return user_service.get_verification(db, user.id)


@admin_router.get("", response_model=schemas.UserPage)
def list_users(
    page: int = Query(default=1),
    limit: int | None = Query(default=None),
    sort: str = Query(default="created_at"),
    order: Literal["asc", "desc"] = Query(default="desc"),
    role: models.UserRole | None = Query(default=None),
    _: models.User = Depends(require_roles(models.UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> schemas.UserPage:
    return user_service.list_users(
        db, page=page, limit=limit, sort=sort, order=order, role=role
    )
