from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from youthlink import models, schemas
from youthlink.core.security import get_current_user, require_roles
from youthlink.db.session import get_db
from youthlink.services import applications as application_service

router = APIRouter(prefix="/applications", tags=["applications"])

Role = models.UserRole


@router.post(
    "",
    response_model=schemas.ApplicationDetail,
    status_code=status.HTTP_201_CREATED,
)
def create_application(
    payload: schemas.ApplicationCreate,
    youth: models.User = Depends(require_roles(Role.YOUTH)),
    db: Session = Depends(get_db),
) -> schemas.ApplicationDetail:
    return application_service.create_application(db, youth.id, payload)


@router.get("/my-applications", response_model=list[schemas.YouthApplication])
def my_applications(
    youth: models.User = Depends(require_roles(Role.YOUTH)),
    db: Session = Depends(get_db),
) -> list[schemas.YouthApplication]:
    return application_service.my_applications(db, youth.id)


@router.get(
    "/opportunity/{opportunity_id}",
    response_model=list[schemas.OpportunityApplication],
)
def opportunity_applications(
    opportunity_id: str,
    donor: models.User = Depends(require_roles(Role.DONOR)),
    db: Session = Depends(get_db),
) -> list[schemas.OpportunityApplication]:
    return application_service.opportunity_applications(db, opportunity_id, donor.id)


@router.put("/{application_id}/status", response_model=schemas.ApplicationDetail)
def update_application_status(
    application_id: str,
    payload: schemas.ApplicationStatusUpdate,
    donor: models.User = Depends(require_roles(Role.DONOR)),
    db: Session = Depends(get_db),
) -> schemas.ApplicationDetail:
    return application_service.update_application_status(
        db, application_id, donor.id, payload
    )


@router.get("/{application_id}", response_model=schemas.ApplicationDetail)
def get_application(
    application_id: str,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.ApplicationDetail:
    return application_service.get_application(db, application_id, user.id)
