"""
Pydantic schemas for request/response models.

This module is the API contract layer and depends on:
- youthlink.models enums (roles, categories, statuses)
- youthlink.config for upload limits

It is used by:
- API routes (request parsing and response_model)
- services, which receive the validated request objects
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import (
    AfterValidator,
    AnyHttpUrl,
    BaseModel,
    EmailStr,
    Field,
    field_validator,
)

from youthlink.config import get_settings
from youthlink.models import (
    ApplicationStatus,
    DocumentType,
    UserRole,
    VerificationStatus,
    YouthCategory,
)


def _naive_utc(value: datetime | None) -> datetime | None:
    """Store every timestamp as naive UTC, like the model defaults."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_naive_utc)]


# ---------- User Schemas ----------


class UserSummary(BaseModel):
    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]

    class Config:
        from_attributes = True


class DonorSummary(UserSummary):
    organization_name: Optional[str]


class AgentSummary(UserSummary):
    country: Optional[str]
    camp: Optional[str]


class VerificationSummary(BaseModel):
    status: VerificationStatus

    class Config:
        from_attributes = True


class UserRead(BaseModel):
    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    phone: Optional[str]
    role: UserRole
    category: Optional[YouthCategory]
    country: Optional[str]
    camp: Optional[str]
    community: Optional[str]
    date_of_birth: Optional[datetime]
    gender: Optional[str]
    organization_name: Optional[str]
    organization_type: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Partial profile update; email, role and password are not editable here."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    category: Optional[YouthCategory] = None
    country: Optional[str] = None
    camp: Optional[str] = None
    community: Optional[str] = None
    date_of_birth: Optional[UtcDatetime] = None
    gender: Optional[str] = None
    organization_name: Optional[str] = None
    organization_type: Optional[str] = None


class UserRegister(ProfileUpdate):
    email: EmailStr
    password: str = Field(min_length=8)
    role: UserRole = UserRole.YOUTH


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    user: UserRead
    token: str
    token_type: str = "bearer"


class UserListItem(BaseModel):
    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: UserRole
    category: Optional[YouthCategory]
    country: Optional[str]
    camp: Optional[str]
    created_at: datetime
    verification: Optional[VerificationSummary]

    class Config:
        from_attributes = True


class UserPage(BaseModel):
    total: int
    page: int
    limit: int
    items: List[UserListItem]


# ---------- Document Schemas ----------


class DocumentRead(BaseModel):
    id: str
    user_id: str
    type: DocumentType
    file_name: str
    file_url: str
    mime_type: Optional[str]
    size: Optional[int]
    uploaded_at: datetime

    class Config:
        from_attributes = True


class DocumentSummary(BaseModel):
    id: str
    type: DocumentType
    file_name: str
    file_url: str
    uploaded_at: datetime

    class Config:
        from_attributes = True


class DocumentUpload(BaseModel):
    type: DocumentType
    file_name: str = Field(min_length=1)
    file_url: AnyHttpUrl
    mime_type: Optional[str] = None
    size: Optional[int] = None

    @field_validator("type")
    @classmethod
    def check_type(cls, value: DocumentType) -> DocumentType:
        if value == DocumentType.ATTACHMENT:
            raise ValueError("type must be one of ID, TRANSCRIPT, RECOMMENDATION_LETTER")
        return value

    @field_validator("size", mode="before")
    @classmethod
    def coerce_size(cls, value):
        # multipart clients send the size as a string; unparseable means absent
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                return None
        if isinstance(value, float):
            if math.isnan(value):
                return None
            if value.is_integer():
                value = int(value)
        return value

    @field_validator("size")
    @classmethod
    def check_size(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return value
        if value <= 0:
            raise ValueError("size must be a positive integer")
        limit = get_settings().max_document_size
        if value > limit:
            raise ValueError(f"size must not exceed {limit} bytes")
        return value


class DocumentUploadResponse(BaseModel):
    document: DocumentRead
    action: Literal["created", "replaced"]


# ---------- Verification Schemas ----------


class AdminReviewRequest(BaseModel):
    status: VerificationStatus
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, value: VerificationStatus) -> VerificationStatus:
        if value == VerificationStatus.PENDING:
            raise ValueError("status must be one of VERIFIED, REJECTED, UNDER_REVIEW")
        return value


class AssignFieldAgentRequest(BaseModel):
    field_agent_id: str = Field(min_length=1)


class FieldVisitCreate(BaseModel):
    verification_id: str = Field(min_length=1)
    visit_date: UtcDatetime
    notes: Optional[str] = None
    photos: List[AnyHttpUrl] = Field(default_factory=list)


class CompleteVerificationRequest(BaseModel):
    notes: Optional[str] = None


class FieldVisitRead(BaseModel):
    id: str
    verification_id: str
    field_agent_id: Optional[str]
    visit_date: datetime
    notes: Optional[str]
    photos: List[str]
    created_at: datetime

    class Config:
        from_attributes = True


class YouthProfile(UserSummary):
    category: Optional[YouthCategory]
    country: Optional[str]
    camp: Optional[str]
    community: Optional[str]
    documents: List[DocumentSummary] = Field(default_factory=list)


class VerificationRead(BaseModel):
    id: str
    user_id: str
    status: VerificationStatus
    admin_id: Optional[str]
    admin_notes: Optional[str]
    field_agent_id: Optional[str]
    field_notes: Optional[str]
    verified_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    admin: Optional[UserSummary] = None
    field_agent: Optional[UserSummary] = None
    field_visits: List[FieldVisitRead] = Field(default_factory=list)

    class Config:
        from_attributes = True


class VerificationDetail(VerificationRead):
    user: YouthProfile


class FieldVisitDetail(FieldVisitRead):
    verification: VerificationDetail


class ScheduleVisitResponse(BaseModel):
    visit: FieldVisitDetail
    assigned_agent: AgentSummary


class YouthSearchResult(UserRead):
    verification: Optional[VerificationSummary]
    documents: List[DocumentSummary] = Field(default_factory=list)


# ---------- Opportunity Schemas ----------


class OpportunityBase(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    requirements: Optional[str] = None
    application_link: Optional[AnyHttpUrl] = None
    categories: List[YouthCategory] = Field(min_length=1)
    countries: List[str] = Field(min_length=1)
    deadline: Optional[UtcDatetime] = None
    max_applicants: Optional[int] = Field(default=None, gt=0)


class OpportunityCreate(OpportunityBase):
    pass


class OpportunityUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    requirements: Optional[str] = None
    application_link: Optional[AnyHttpUrl] = None
    categories: Optional[List[YouthCategory]] = Field(default=None, min_length=1)
    countries: Optional[List[str]] = Field(default=None, min_length=1)
    deadline: Optional[UtcDatetime] = None
    max_applicants: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None

    @field_validator("title", "description", "categories", "countries", "is_active")
    @classmethod
    def check_not_null(cls, value):
        # these may be omitted but not cleared
        if value is None:
            raise ValueError("field cannot be null")
        return value


class OpportunityRead(BaseModel):
    id: str
    donor_id: str
    title: str
    description: str
    requirements: Optional[str]
    application_link: Optional[str]
    categories: List[YouthCategory]
    countries: List[str]
    deadline: Optional[datetime]
    max_applicants: Optional[int]
    is_active: bool
    created_at: datetime
    updated_at: datetime
    donor: DonorSummary

    class Config:
        from_attributes = True


class OpportunityDetail(OpportunityRead):
    application_count: int


class CloseExpiredResponse(BaseModel):
    execution_mode: Literal["celery", "inline"]
    task_id: Optional[str] = None
    closed: Optional[int] = None


class MessageResponse(BaseModel):
    message: str


# ---------- Application Schemas ----------


class ApplicationDocument(BaseModel):
    file_name: str = Field(min_length=1)
    file_url: str = Field(min_length=1)
    mime_type: Optional[str] = None
    size: Optional[int] = Field(default=None, gt=0)
    type: DocumentType = DocumentType.ATTACHMENT


class ApplicationCreate(BaseModel):
    opportunity_id: str = Field(min_length=1)
    cover_letter: Optional[str] = None
    additional_info: Optional[str] = None
    documents: List[ApplicationDocument] = Field(default_factory=list)


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class ApplicantRead(UserSummary):
    category: Optional[YouthCategory]
    country: Optional[str]
    camp: Optional[str]
    community: Optional[str]
    verification: Optional[VerificationSummary]


class ApplicationRead(BaseModel):
    id: str
    youth_id: str
    opportunity_id: str
    status: ApplicationStatus
    cover_letter: Optional[str]
    additional_info: Optional[str]
    submitted_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ApplicationDetail(ApplicationRead):
    opportunity: OpportunityRead
    youth: ApplicantRead


class YouthApplication(ApplicationRead):
    opportunity: OpportunityRead


class OpportunityApplication(ApplicationRead):
    youth: ApplicantRead
