from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from youthlink import models, schemas
from youthlink.core.security import get_current_user, require_roles
from youthlink.db.session import get_db
from youthlink.services import opportunities as opportunity_service

router = APIRouter(prefix="/opportunities", tags=["opportunities"])
logger = logging.getLogger(__name__)

Role = models.UserRole


def _dispatch_close_expired(db: Session) -> schemas.CloseExpiredResponse:
    """Queue the housekeeping job via Celery, with a synchronous fallback."""
    try:
        from youthlink.services.tasks import close_expired_opportunities_task

        async_result = close_expired_opportunities_task.delay()
        return schemas.CloseExpiredResponse(
            execution_mode="celery", task_id=async_result.id
        )
    except Exception:  # noqa: BLE001
        logger.warning(
            "Celery dispatch failed; closing expired opportunities inline",
            exc_info=True,
        )

    closed = opportunity_service.close_expired_opportunities(db)
    return schemas.CloseExpiredResponse(execution_mode="inline", closed=closed)


@router.get("", response_model=list[schemas.OpportunityRead])
def list_opportunities(
    category: models.YouthCategory | None = Query(default=None),
    country: str | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    donor_id: str | None = Query(default=None),
    _: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[schemas.OpportunityRead]:
    return opportunity_service.list_opportunities(
        db,
        category=category,
        country=country,
        is_active=is_active,
        donor_id=donor_id,
    )


@router.post(
    "",
    response_model=schemas.OpportunityRead,
    status_code=status.HTTP_201_CREATED,
)
def create_opportunity(
    payload: schemas.OpportunityCreate,
    donor: models.User = Depends(require_roles(Role.DONOR, Role.ADMIN)),
    db: Session = Depends(get_db),
) -> schemas.OpportunityRead:
    return opportunity_service.create_opportunity(db, donor, payload)


@router.post("/close-expired", response_model=schemas.CloseExpiredResponse)
def close_expired(
    _: models.User = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
) -> schemas.CloseExpiredResponse:
    return _dispatch_close_expired(db)


@router.get("/{opportunity_id}", response_model=schemas.OpportunityDetail)
def get_opportunity(
    opportunity_id: str,
    _: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.OpportunityDetail:
    return opportunity_service.get_opportunity(db, opportunity_id)


@router.put("/{opportunity_id}", response_model=schemas.OpportunityRead)
def update_opportunity(
    opportunity_id: str,
    payload: schemas.OpportunityUpdate,
    user: models.User = Depends(require_roles(Role.DONOR, Role.ADMIN)),
    db: Session = Depends(get_db),
) -> schemas.OpportunityRead:
    return opportunity_service.update_opportunity(db, opportunity_id, user, payload)


@router.delete("/{opportunity_id}", response_model=schemas.MessageResponse)
def delete_opportunity(
    opportunity_id: str,
    user: models.User = Depends(require_roles(Role.DONOR, Role.ADMIN)),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    opportunity_service.delete_opportunity(db, opportunity_id, user)
    return schemas.MessageResponse(message="Opportunity deleted")
