"""
Donor-posted opportunities.

Categories and countries are stored as JSON lists, so the category/country
filters run in Python over the rows the SQL filters leave.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session, selectinload

from youthlink import models, schemas
from youthlink.core.exceptions import NotFoundError, PermissionDeniedError
from youthlink.services.statsig_client import log_backend_event

logger = logging.getLogger(__name__)


def _matches_country(opportunity: models.Opportunity, country: str) -> bool:
    needle = country.strip().lower()
    return any(needle == (c or "").strip().lower() for c in opportunity.countries or [])


def list_opportunities(
    db: Session,
    *,
    category: models.YouthCategory | None = None,
    country: str | None = None,
    is_active: bool | None = None,
    donor_id: str | None = None,
) -> list[models.Opportunity]:
    query = db.query(models.Opportunity).options(selectinload(models.Opportunity.donor))
    if is_active is not None:
        query = query.filter(models.Opportunity.is_active == is_active)
    if donor_id:
        query = query.filter(models.Opportunity.donor_id == donor_id)

    opportunities = query.order_by(models.Opportunity.created_at.desc()).all()
    if category:
        opportunities = [o for o in opportunities if category.value in (o.categories or [])]
    if country:
        opportunities = [o for o in opportunities if _matches_country(o, country)]
    return opportunities


def get_opportunity(db: Session, opportunity_id: str) -> models.Opportunity:
    opportunity = (
        db.query(models.Opportunity)
        .options(
            selectinload(models.Opportunity.donor),
            selectinload(models.Opportunity.applications),
        )
        .filter(models.Opportunity.id == opportunity_id)
        .first()
    )
    if not opportunity:
        raise NotFoundError("Opportunity not found")
    return opportunity


def _check_owner(opportunity: models.Opportunity, user: models.User) -> None:
    if user.role != models.UserRole.ADMIN and opportunity.donor_id != user.id:
        raise PermissionDeniedError("You can only manage your own opportunities")


def _column_values(data: dict) -> dict:
    if data.get("categories") is not None:
        data["categories"] = [models.YouthCategory(c).value for c in data["categories"]]
    if data.get("application_link") is not None:
        data["application_link"] = str(data["application_link"])
    return data


def create_opportunity(
    db: Session,
    donor: models.User,
    payload: schemas.OpportunityCreate,
) -> models.Opportunity:
    opportunity = models.Opportunity(
        donor_id=donor.id,
        is_active=True,
        **_column_values(payload.model_dump()),
    )
    db.add(opportunity)
    db.commit()
    db.refresh(opportunity)

    logger.info("Opportunity %s created by %s", opportunity.id, donor.id)
    log_backend_event(
        "opportunity_created",
        user_id=donor.id,
        role=donor.role.value,
        metadata={"opportunity_id": opportunity.id},
    )
    return opportunity


def update_opportunity(
    db: Session,
    opportunity_id: str,
    user: models.User,
    payload: schemas.OpportunityUpdate,
) -> models.Opportunity:
    opportunity = get_opportunity(db, opportunity_id)
    _check_owner(opportunity, user)

    for field, value in _column_values(payload.model_dump(exclude_unset=True)).items():
        setattr(opportunity, field, value)
    db.commit()
    db.refresh(opportunity)
    return opportunity


def delete_opportunity(db: Session, opportunity_id: str, user: models.User) -> None:
    opportunity = get_opportunity(db, opportunity_id)
    _check_owner(opportunity, user)
    db.delete(opportunity)
    db.commit()
    logger.info("Opportunity %s deleted by %s", opportunity_id, user.id)


def close_expired_opportunities(db: Session, now: datetime | None = None) -> int:
    """Deactivate every active opportunity whose deadline has passed."""
    now = now or datetime.utcnow()
    expired = (
        db.query(models.Opportunity)
        .filter(
            models.Opportunity.is_active.is_(True),
            models.Opportunity.deadline.isnot(None),
            models.Opportunity.deadline < now,
        )
        .all()
    )
    for opportunity in expired:
        opportunity.is_active = False
    db.commit()

    if expired:
        logger.info("Closed %d expired opportunities", len(expired))
        log_backend_event("opportunities_closed", metadata={"count": len(expired)})
    return len(expired)
