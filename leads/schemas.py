from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from ninja import Field, Schema
from pydantic import EmailStr, field_validator

from core.schemas import PageMetaSchema
from projects.schemas import ProjectType

LeadStatus = Literal["new", "contacted", "qualified", "converted", "lost"]
LeadSource = Literal["website", "referral", "social", "advertisement"]
LeadPriority = Literal["low", "medium", "high", "urgent"]

PHONE_PATTERN = r"^\+?[\d\s\-()]+$"


class LeadCreateSchema(Schema):
    """Lead capture form submission"""
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=7, max_length=20, pattern=PHONE_PATTERN)
    project_id: Optional[UUID] = None
    budget: str = Field("", max_length=50)
    purpose: str = Field("", max_length=100)
    requirements: str = Field("", max_length=1000)
    message: str = Field("", max_length=500)
    interests: List[ProjectType] = Field(default_factory=list, max_length=3)
    source: LeadSource = "website"
    utm_source: str = Field("", max_length=100)
    utm_medium: str = Field("", max_length=100)
    utm_campaign: str = Field("", max_length=100)
    landing_page: str = Field("", max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters")
        return value


class LeadUpdateSchema(Schema):
    """Operator-managed fields; everything else on a lead is immutable"""
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None
    notes: Optional[str] = Field(None, max_length=1000)
    follow_up_date: Optional[datetime] = None
    assigned_to_id: Optional[UUID] = None
    force: bool = False  # explicit operator reversion of the status pipeline


class LeadFilterSchema(Schema):
    """Schema for filtering leads"""
    status: Optional[LeadStatus] = None
    source: Optional[LeadSource] = None
    project_id: Optional[UUID] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)


class LeadResponseSchema(Schema):
    """Schema for lead response"""
    id: UUID
    name: str
    email: str
    phone: str
    project_interest_id: Optional[UUID] = None
    budget: str
    purpose: str
    requirements: str
    message: str
    interests: List[str] = []
    source: str
    utm_source: str
    utm_medium: str
    utm_campaign: str
    referrer: str
    landing_page: str
    status: str
    priority: str
    assigned_to_id: Optional[UUID] = None
    notes: str
    follow_up_date: Optional[datetime] = None
    last_contact_date: Optional[datetime] = None
    conversion_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class LeadCreatedSchema(Schema):
    id: UUID


class LeadCreatedResponseSchema(Schema):
    data: LeadCreatedSchema
    message: str


class LeadDetailResponseSchema(Schema):
    data: LeadResponseSchema
    message: Optional[str] = None


class LeadFilterResponseSchema(Schema):
    """Schema for lead listing response"""
    data: List[LeadResponseSchema]
    meta: PageMetaSchema
