"""
Core ORM models for the YouthLink backend.

This module depends on:
- youthlink.db.session.Base for the declarative base

It is used by:
- youthlink.schemas (for enum references)
- services (for querying and persisting data)
- Celery tasks for the opportunity housekeeping job

Models:
- User: youth, donor, admin or field agent account
- Document: metadata for an uploaded identity/academic file
- Verification: one identity-check record per user
- FieldVisit: a field agent's physical visit for a verification
- Opportunity: a donor-posted listing
- Application: a youth's submission against an opportunity
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from youthlink.db.session import Base


class UserRole(str, enum.Enum):
    YOUTH = "YOUTH"
    DONOR = "DONOR"
    ADMIN = "ADMIN"
    FIELD_AGENT = "FIELD_AGENT"


class YouthCategory(str, enum.Enum):
    REFUGEE = "REFUGEE"
    IDP = "IDP"
    VULNERABLE = "VULNERABLE"
    PWD = "PWD"


class DocumentType(str, enum.Enum):
    ID = "ID"
    TRANSCRIPT = "TRANSCRIPT"
    RECOMMENDATION_LETTER = "RECOMMENDATION_LETTER"
    ATTACHMENT = "ATTACHMENT"


class VerificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class ApplicationStatus(str, enum.Enum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    SELECTED = "SELECTED"
    REJECTED = "REJECTED"


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_uuid)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)

    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.YOUTH)

    # Youth profile; camp doubles as the working area for field agents
    category = Column(Enum(YouthCategory), nullable=True)
    country = Column(String, nullable=True)
    camp = Column(String, nullable=True)
    community = Column(String, nullable=True)
    date_of_birth = Column(DateTime, nullable=True)
    gender = Column(String, nullable=True)

    # Donor profile
    organization_name = Column(String, nullable=True)
    organization_type = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    documents = relationship(
        "Document",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Document.uploaded_at.desc()",
    )
    verification = relationship(
        "Verification",
        back_populates="user",
        foreign_keys="Verification.user_id",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    opportunities = relationship(
        "Opportunity",
        back_populates="donor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    applications = relationship(
        "Application",
        back_populates="youth",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Document(Base):
    __tablename__ = "documents"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    type = Column(Enum(DocumentType), nullable=False)
    file_name = Column(String, nullable=False)
    file_url = Column(String, nullable=False)
    mime_type = Column(String, nullable=True)
    size = Column(Integer, nullable=True)  # bytes

    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="documents")


class Verification(Base):
    __tablename__ = "verifications"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(
        String,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    status = Column(
        Enum(VerificationStatus),
        default=VerificationStatus.PENDING,
        nullable=False,
    )

    admin_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    admin_notes = Column(Text, nullable=True)

    field_agent_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    field_notes = Column(Text, nullable=True)

    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    user = relationship("User", back_populates="verification", foreign_keys=[user_id])
    admin = relationship("User", foreign_keys=[admin_id])
    field_agent = relationship("User", foreign_keys=[field_agent_id])
    field_visits = relationship(
        "FieldVisit",
        back_populates="verification",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="FieldVisit.visit_date.desc()",
    )


class FieldVisit(Base):
    __tablename__ = "field_visits"

    id = Column(String, primary_key=True, default=_uuid)
    verification_id = Column(
        String,
        ForeignKey("verifications.id", ondelete="CASCADE"),
        nullable=False,
    )
    field_agent_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    visit_date = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)
    photos = Column(JSON, nullable=False, default=list)  # list[str] of URLs

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    verification = relationship("Verification", back_populates="field_visits")
    field_agent = relationship("User", foreign_keys=[field_agent_id])


class Opportunity(Base):
    __tablename__ = "opportunities"

    id = Column(String, primary_key=True, default=_uuid)
    donor_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=True)
    application_link = Column(String, nullable=True)

    # JSON lists: ["REFUGEE", "IDP"] and ["Kenya", "Uganda"]
    categories = Column(JSON, nullable=False, default=list)
    countries = Column(JSON, nullable=False, default=list)

    deadline = Column(DateTime, nullable=True)
    max_applicants = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    donor = relationship("User", back_populates="opportunities")
    applications = relationship(
        "Application",
        back_populates="opportunity",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def application_count(self) -> int:
        return len(self.applications)


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("youth_id", "opportunity_id", name="uq_application_youth_opportunity"),
    )

    id = Column(String, primary_key=True, default=_uuid)
    youth_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    opportunity_id = Column(
        String,
        ForeignKey("opportunities.id", ondelete="CASCADE"),
        nullable=False,
    )

    status = Column(
        Enum(ApplicationStatus),
        default=ApplicationStatus.PENDING,
        nullable=False,
    )
    cover_letter = Column(Text, nullable=True)
    additional_info = Column(Text, nullable=True)

    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    youth = relationship("User", back_populates="applications")
    opportunity = relationship("Opportunity", back_populates="applications")
