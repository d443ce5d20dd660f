from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from youthlink import models, schemas
from youthlink.core.security import require_roles
from youthlink.db.session import get_db
from youthlink.services import verification as verification_service

router = APIRouter(prefix="/verification", tags=["verification"])

Role = models.UserRole


@router.post("/documents", response_model=schemas.DocumentUploadResponse)
def upload_document(
    payload: schemas.DocumentUpload,
    response: Response,
    user: models.User = Depends(require_roles(Role.YOUTH)),
    db: Session = Depends(get_db),
) -> schemas.DocumentUploadResponse:
    """Upload (or replace) one of the youth's verification documents."""
    document, action = verification_service.upload_document(db, user.id, payload)
    response.status_code = (
        status.HTTP_201_CREATED if action == "created" else status.HTTP_200_OK
    )
    return schemas.DocumentUploadResponse(
        document=schemas.DocumentRead.model_validate(document),
        action=action,
    )


@router.get("/pending", response_model=list[schemas.VerificationDetail])
def get_pending_verifications(
    _: models.User = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
) -> list[schemas.VerificationDetail]:
    return verification_service.pending_verifications(db)


@router.get("/field-agent", response_model=list[schemas.VerificationDetail])
def get_field_agent_verifications(
    agent: models.User = Depends(require_roles(Role.FIELD_AGENT)),
    db: Session = Depends(get_db),
) -> list[schemas.VerificationDetail]:
    return verification_service.field_agent_verifications(db, agent.id)


@router.get("/search", response_model=list[schemas.YouthSearchResult])
def search_youth(
    category: models.YouthCategory | None = Query(default=None),
    country: str | None = Query(default=None),
    camp: str | None = Query(default=None),
    status: models.VerificationStatus | None = Query(default=None),
    _: models.User = Depends(require_roles(Role.ADMIN, Role.DONOR)),
    db: Session = Depends(get_db),
) -> list[schemas.YouthSearchResult]:
    return verification_service.search_youth(
        db, category=category, country=country, camp=camp, status=status
    )


@router.post(
    "/field-visit",
    response_model=schemas.FieldVisitDetail,
    status_code=status.HTTP_201_CREATED,
)
def create_field_visit(
    payload: schemas.FieldVisitCreate,
    agent: models.User = Depends(require_roles(Role.FIELD_AGENT)),
    db: Session = Depends(get_db),
) -> schemas.FieldVisitDetail:
    return verification_service.create_field_visit(db, agent.id, payload)


@router.post(
    "/schedule",
    response_model=schemas.ScheduleVisitResponse,
    status_code=status.HTTP_201_CREATED,
)
def schedule_field_visit(
    payload: schemas.FieldVisitCreate,
    admin: models.User = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
) -> schemas.ScheduleVisitResponse:
    """Schedule a visit, auto-assigning a field agent by camp or country."""
    visit, agent = verification_service.schedule_field_visit(db, admin.id, payload)
    return schemas.ScheduleVisitResponse(
        visit=schemas.FieldVisitDetail.model_validate(visit),
        assigned_agent=schemas.AgentSummary.model_validate(agent),
    )


@router.put("/{verification_id}/review", response_model=schemas.VerificationDetail)
def review_verification(
    verification_id: str,
    payload: schemas.AdminReviewRequest,
    admin: models.User = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
) -> schemas.VerificationDetail:
    return verification_service.admin_review(db, verification_id, admin.id, payload)


@router.put("/{verification_id}/assign", response_model=schemas.VerificationDetail)
def assign_field_agent(
    verification_id: str,
    payload: schemas.AssignFieldAgentRequest,
    _: models.User = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
) -> schemas.VerificationDetail:
    return verification_service.assign_field_agent(db, verification_id, payload)


@router.put("/{verification_id}/complete", response_model=schemas.VerificationDetail)
def complete_verification(
    verification_id: str,
    payload: schemas.CompleteVerificationRequest,
    agent: models.User = Depends(require_roles(Role.FIELD_AGENT)),
    db: Session = Depends(get_db),
) -> schemas.VerificationDetail:
    return verification_service.complete_field_verification(
        db, verification_id, agent.id, payload.notes
    )
