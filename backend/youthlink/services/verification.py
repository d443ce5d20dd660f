"""
Identity verification workflow.

A youth's Verification moves through PENDING -> UNDER_REVIEW -> VERIFIED or
REJECTED. Admins review documents directly or send a field agent; agents
record visits and complete the verification after meeting the youth.

Field agent matching for scheduled visits (see find_field_agent):
1. agents whose camp equals the youth's camp or the youth's community
2. otherwise agents whose country equals the youth's country
The earliest-registered matching agent wins.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from youthlink import models, schemas
from youthlink.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from youthlink.services.statsig_client import log_backend_event

logger = logging.getLogger(__name__)


def _youth_profile_options():
    return (
        selectinload(models.Verification.user).selectinload(models.User.documents),
        selectinload(models.Verification.admin),
        selectinload(models.Verification.field_agent),
        selectinload(models.Verification.field_visits),
    )


def _load_verification(db: Session, verification_id: str) -> models.Verification:
    verification = (
        db.query(models.Verification)
        .options(*_youth_profile_options())
        .filter(models.Verification.id == verification_id)
        .first()
    )
    if not verification:
        raise NotFoundError("Verification not found")
    return verification


# ---- Documents ----


def store_document(
    db: Session,
    user_id: str,
    doc_type: models.DocumentType,
    *,
    file_name: str,
    file_url: str,
    mime_type: str | None = None,
    size: int | None = None,
) -> tuple[models.Document, str]:
    """Stage a document without committing.

    A user keeps one document per type, so an existing one is updated in
    place. ATTACHMENT documents are always added as new rows.
    """
    existing = None
    if doc_type != models.DocumentType.ATTACHMENT:
        existing = (
            db.query(models.Document)
            .filter(
                models.Document.user_id == user_id,
                models.Document.type == doc_type,
            )
            .first()
        )

    if existing:
        existing.file_name = file_name
        existing.file_url = file_url
        existing.mime_type = mime_type
        existing.size = size
        existing.uploaded_at = datetime.utcnow()
        return existing, "replaced"

    document = models.Document(
        user_id=user_id,
        type=doc_type,
        file_name=file_name,
        file_url=file_url,
        mime_type=mime_type,
        size=size,
    )
    db.add(document)
    return document, "created"


def upload_document(
    db: Session,
    user_id: str,
    payload: schemas.DocumentUpload,
) -> tuple[models.Document, str]:
    """Create the user's document of this type, or replace the existing one.

    Returns the saved document and "created" or "replaced".
    """
    document, action = store_document(
        db,
        user_id,
        payload.type,
        file_name=payload.file_name,
        file_url=str(payload.file_url),
        mime_type=payload.mime_type,
        size=payload.size,
    )
    db.commit()
    db.refresh(document)
    logger.info("Document %s %s for user %s", document.type.value, action, user_id)
    log_backend_event(
        "document_uploaded",
        user_id=user_id,
        metadata={"type": document.type.value, "action": action},
    )
    return document, action


# ---- Admin review ----


def pending_verifications(db: Session) -> list[models.Verification]:
    return (
        db.query(models.Verification)
        .options(*_youth_profile_options())
        .filter(models.Verification.status == models.VerificationStatus.PENDING)
        .order_by(models.Verification.created_at.desc())
        .all()
    )


def admin_review(
    db: Session,
    verification_id: str,
    admin_id: str,
    payload: schemas.AdminReviewRequest,
) -> models.Verification:
    verification = _load_verification(db, verification_id)

    verification.status = payload.status
    verification.admin_id = admin_id
    verification.admin_notes = payload.notes
    if payload.status == models.VerificationStatus.VERIFIED:
        verification.verified_at = datetime.utcnow()

    db.commit()
    db.refresh(verification)
    logger.info(
        "Verification %s reviewed by %s: %s",
        verification.id,
        admin_id,
        verification.status.value,
    )
    log_backend_event(
        "verification_reviewed",
        user_id=admin_id,
        role=models.UserRole.ADMIN.value,
        metadata={"verification_id": verification.id, "status": verification.status.value},
    )
    return verification


def assign_field_agent(
    db: Session,
    verification_id: str,
    payload: schemas.AssignFieldAgentRequest,
) -> models.Verification:
    verification = _load_verification(db, verification_id)

    agent = db.get(models.User, payload.field_agent_id)
    if not agent or agent.role != models.UserRole.FIELD_AGENT:
        raise ValidationFailedError("Field agent not found")

    verification.field_agent_id = agent.id
    verification.status = models.VerificationStatus.UNDER_REVIEW
    db.commit()
    db.refresh(verification)

    logger.info("Field agent %s assigned to verification %s", agent.id, verification.id)
    log_backend_event(
        "field_agent_assigned",
        user_id=agent.id,
        role=agent.role.value,
        metadata={"verification_id": verification.id, "mode": "manual"},
    )
    return verification


# ---- Field agents ----


def field_agent_verifications(db: Session, agent_id: str) -> list[models.Verification]:
    return (
        db.query(models.Verification)
        .options(*_youth_profile_options())
        .filter(models.Verification.field_agent_id == agent_id)
        .order_by(models.Verification.created_at.desc())
        .all()
    )


def _add_visit(
    db: Session,
    verification: models.Verification,
    agent_id: str,
    payload: schemas.FieldVisitCreate,
) -> models.FieldVisit:
    visit = models.FieldVisit(
        verification_id=verification.id,
        field_agent_id=agent_id,
        visit_date=payload.visit_date,
        notes=payload.notes,
        photos=[str(p) for p in payload.photos],
    )
    db.add(visit)
    return visit


def create_field_visit(
    db: Session,
    agent_id: str,
    payload: schemas.FieldVisitCreate,
) -> models.FieldVisit:
    verification = _load_verification(db, payload.verification_id)
    visit = _add_visit(db, verification, agent_id, payload)
    db.commit()
    db.refresh(visit)
    logger.info("Field visit %s recorded by agent %s", visit.id, agent_id)
    return visit


def find_field_agent(db: Session, youth: models.User) -> models.User | None:
    """Pick a field agent for a youth by camp/community, then by country."""
    agents = db.query(models.User).filter(
        models.User.role == models.UserRole.FIELD_AGENT
    )
    ordering = (models.User.created_at.asc(), models.User.id.asc())

    areas = [a for a in (youth.camp, youth.community) if a]
    if areas:
        agent = (
            agents.filter(or_(*(models.User.camp == a for a in areas)))
            .order_by(*ordering)
            .first()
        )
        if agent:
            return agent

    if youth.country:
        return (
            agents.filter(models.User.country == youth.country)
            .order_by(*ordering)
            .first()
        )
    return None


def schedule_field_visit(
    db: Session,
    admin_id: str,
    payload: schemas.FieldVisitCreate,
) -> tuple[models.FieldVisit, models.User]:
    """Auto-assign a field agent near the youth and book the visit."""
    verification = _load_verification(db, payload.verification_id)

    agent = find_field_agent(db, verification.user)
    if not agent:
        raise ValidationFailedError(
            "No field agents available in the youth's camp or country to schedule the visit"
        )

    verification.field_agent_id = agent.id
    verification.status = models.VerificationStatus.UNDER_REVIEW
    visit = _add_visit(db, verification, agent.id, payload)
    db.commit()
    db.refresh(visit)

    logger.info(
        "Admin %s scheduled visit %s with agent %s for verification %s",
        admin_id,
        visit.id,
        agent.id,
        verification.id,
    )
    log_backend_event(
        "field_visit_scheduled",
        user_id=admin_id,
        role=models.UserRole.ADMIN.value,
        metadata={"verification_id": verification.id, "field_agent_id": agent.id},
    )
    return visit, agent


def complete_field_verification(
    db: Session,
    verification_id: str,
    agent_id: str,
    notes: str | None = None,
) -> models.Verification:
    verification = _load_verification(db, verification_id)
    if verification.field_agent_id != agent_id:
        raise PermissionDeniedError(
            "Only the assigned field agent can complete this verification"
        )

    verification.status = models.VerificationStatus.VERIFIED
    verification.field_notes = notes
    verification.verified_at = datetime.utcnow()
    db.commit()
    db.refresh(verification)

    logger.info("Verification %s completed by agent %s", verification.id, agent_id)
    log_backend_event(
        "field_verification_completed",
        user_id=agent_id,
        role=models.UserRole.FIELD_AGENT.value,
        metadata={"verification_id": verification.id},
    )
    return verification


# ---- Search ----


def search_youth(
    db: Session,
    *,
    category: models.YouthCategory | None = None,
    country: str | None = None,
    camp: str | None = None,
    status: models.VerificationStatus | None = None,
) -> list[models.User]:
    query = (
        db.query(models.User)
        .options(
            selectinload(models.User.verification),
            selectinload(models.User.documents),
        )
        .filter(models.User.role == models.UserRole.YOUTH)
    )

    if category:
        query = query.filter(models.User.category == category)
    if country:
        query = query.filter(
            func.lower(models.User.country).contains(country.lower(), autoescape=True)
        )
    if camp:
        needle = camp.lower()
        query = query.filter(
            or_(
                func.lower(models.User.camp).contains(needle, autoescape=True),
                func.lower(models.User.community).contains(needle, autoescape=True),
            )
        )
    if status:
        query = query.join(
            models.Verification,
            models.Verification.user_id == models.User.id,
        ).filter(models.Verification.status == status)

    return query.order_by(models.User.created_at.desc()).all()
