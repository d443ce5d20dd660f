"""
Youth applications to opportunities.

check_eligibility() is the gate every new application passes, in order:
opportunity exists, is active, deadline not passed, youth VERIFIED, no
earlier application, capacity left. The first failing rule is reported.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from youthlink import models, schemas
from youthlink.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from youthlink.services.statsig_client import log_backend_event
from youthlink.services.verification import store_document

logger = logging.getLogger(__name__)

ALREADY_APPLIED = "You have already applied to this opportunity"


def _detail_options():
    return (
        selectinload(models.Application.opportunity).selectinload(models.Opportunity.donor),
        selectinload(models.Application.youth).selectinload(models.User.verification),
    )


def check_eligibility(
    db: Session,
    youth_id: str,
    opportunity_id: str,
    now: datetime | None = None,
) -> models.Opportunity:
    """Return the opportunity when the youth may apply, else raise."""
    now = now or datetime.utcnow()

    opportunity = db.get(models.Opportunity, opportunity_id)
    if not opportunity:
        raise NotFoundError("Opportunity not found")

    if not opportunity.is_active:
        raise ValidationFailedError("This opportunity is no longer active")

    if opportunity.deadline and opportunity.deadline < now:
        raise ValidationFailedError("The deadline for this opportunity has passed")

    verification = (
        db.query(models.Verification)
        .filter(models.Verification.user_id == youth_id)
        .first()
    )
    if not verification or verification.status != models.VerificationStatus.VERIFIED:
        raise ValidationFailedError("You must be verified before applying to opportunities")

    existing = (
        db.query(models.Application.id)
        .filter(
            models.Application.youth_id == youth_id,
            models.Application.opportunity_id == opportunity_id,
        )
        .first()
    )
    if existing:
        raise ValidationFailedError(ALREADY_APPLIED)

    if opportunity.max_applicants:
        count = (
            db.query(func.count(models.Application.id))
            .filter(models.Application.opportunity_id == opportunity_id)
            .scalar()
        )
        if count >= opportunity.max_applicants:
            raise ValidationFailedError(
                "This opportunity has reached its maximum number of applicants"
            )

    return opportunity


def create_application(
    db: Session,
    youth_id: str,
    payload: schemas.ApplicationCreate,
) -> models.Application:
    check_eligibility(db, youth_id, payload.opportunity_id)

    application = models.Application(
        youth_id=youth_id,
        opportunity_id=payload.opportunity_id,
        cover_letter=payload.cover_letter,
        additional_info=payload.additional_info,
        status=models.ApplicationStatus.PENDING,
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent submission won the unique (youth, opportunity) constraint
        db.rollback()
        raise ValidationFailedError(ALREADY_APPLIED)

    if payload.documents:
        for doc in payload.documents:
            store_document(
                db,
                youth_id,
                doc.type,
                file_name=doc.file_name,
                file_url=doc.file_url,
                mime_type=doc.mime_type,
                size=doc.size,
            )
        db.commit()

    db.refresh(application)
    logger.info(
        "Youth %s applied to opportunity %s (%d attachments)",
        youth_id,
        payload.opportunity_id,
        len(payload.documents),
    )
    log_backend_event(
        "application_submitted",
        user_id=youth_id,
        role=models.UserRole.YOUTH.value,
        metadata={"opportunity_id": payload.opportunity_id},
    )
    return application


def my_applications(db: Session, youth_id: str) -> list[models.Application]:
    return (
        db.query(models.Application)
        .options(*_detail_options())
        .filter(models.Application.youth_id == youth_id)
        .order_by(models.Application.submitted_at.desc())
        .all()
    )


def opportunity_applications(
    db: Session,
    opportunity_id: str,
    donor_id: str,
) -> list[models.Application]:
    opportunity = db.get(models.Opportunity, opportunity_id)
    if not opportunity:
        raise NotFoundError("Opportunity not found")
    if opportunity.donor_id != donor_id:
        raise PermissionDeniedError(
            "You can only view applications for your own opportunities"
        )

    return (
        db.query(models.Application)
        .options(*_detail_options())
        .filter(models.Application.opportunity_id == opportunity_id)
        .order_by(models.Application.submitted_at.desc())
        .all()
    )


def _load_application(db: Session, application_id: str) -> models.Application:
    application = (
        db.query(models.Application)
        .options(*_detail_options())
        .filter(models.Application.id == application_id)
        .first()
    )
    if not application:
        raise NotFoundError("Application not found")
    return application


def update_application_status(
    db: Session,
    application_id: str,
    donor_id: str,
    payload: schemas.ApplicationStatusUpdate,
) -> models.Application:
    application = _load_application(db, application_id)
    if application.opportunity.donor_id != donor_id:
        raise PermissionDeniedError(
            "You can only update applications for your own opportunities"
        )

    application.status = payload.status
    db.commit()
    db.refresh(application)

    log_backend_event(
        "application_status_updated",
        user_id=donor_id,
        role=models.UserRole.DONOR.value,
        metadata={"application_id": application.id, "status": application.status.value},
    )
    return application


def get_application(db: Session, application_id: str, user_id: str) -> models.Application:
    application = _load_application(db, application_id)
    if user_id not in (application.youth_id, application.opportunity.donor_id):
        raise PermissionDeniedError("You can only view your own applications")
    return application
