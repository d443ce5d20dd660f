from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from youthlink import models, schemas
from youthlink.core.security import create_user_token, get_current_user
from youthlink.db.session import get_db
from youthlink.services import users as user_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: schemas.UserRegister,
    db: Session = Depends(get_db),
) -> schemas.AuthResponse:
    user = user_service.register(db, payload)
    return schemas.AuthResponse(
        user=schemas.UserRead.model_validate(user),
        token=create_user_token(user),
    )


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
) -> schemas.AuthResponse:
    user = user_service.authenticate(db, payload.email, payload.password)
    return schemas.AuthResponse(
        user=schemas.UserRead.model_validate(user),
        token=create_user_token(user),
    )


@router.get("/me", response_model=schemas.UserRead)
def me(user: models.User = Depends(get_current_user)) -> schemas.UserRead:
    return user
