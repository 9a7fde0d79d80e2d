from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional, Union
from uuid import UUID

from ninja import Field, Schema
from pydantic import field_validator

from core.schemas import PageMetaSchema

ProjectType = Literal["coconut", "spice", "backwater", "hill-station"]

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class CoordinatesSchema(Schema):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class ReturnProjectionSchema(Schema):
    year: int = Field(..., ge=1)
    percentage: float


ExpectedReturns = Union[str, List[ReturnProjectionSchema]]


def check_expected_returns(value):
    if isinstance(value, str) and len(value) > 50:
        raise ValueError("Expected returns description too long")
    return value


class ProjectCreateSchema(Schema):
    """Schema for creating a project"""
    name: str = Field(..., min_length=2, max_length=100)
    slug: str = Field(..., max_length=255, pattern=SLUG_PATTERN)
    description: str = Field(..., min_length=10, max_length=1000)
    location: str = Field(..., min_length=2, max_length=100)
    state: str = Field("", max_length=100)
    district: str = Field("", max_length=100)
    project_type: ProjectType
    price_per_sq_ft: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    total_area: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    available_area: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    min_investment: Optional[Decimal] = Field(None, gt=0, max_digits=15, decimal_places=2)
    coordinates: CoordinatesSchema
    features: List[str] = Field(..., min_length=1, max_length=10)
    amenities: List[str] = Field(default_factory=list, max_length=20)
    images: List[str] = Field(default_factory=list, max_length=5)
    expected_returns: Optional[ExpectedReturns] = None
    water_availability: str = Field("", max_length=100)
    cottage_permitted: bool = False
    legal_status: Literal["clear", "pending", "disputed"] = "clear"
    featured: bool = False
    active: bool = True

    @field_validator("expected_returns")
    @classmethod
    def check_returns(cls, value):
        return check_expected_returns(value)

    @field_validator("images")
    @classmethod
    def check_image_urls(cls, value: List[str]) -> List[str]:
        for url in value:
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"Invalid image URL: {url}")
        return value


class ProjectUpdateSchema(Schema):
    """Partial update; only supplied fields are written. ``slug`` may not change."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    slug: Optional[str] = None
    description: Optional[str] = Field(None, min_length=10, max_length=1000)
    location: Optional[str] = Field(None, min_length=2, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    project_type: Optional[ProjectType] = None
    price_per_sq_ft: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    total_area: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    available_area: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    min_investment: Optional[Decimal] = Field(None, gt=0, max_digits=15, decimal_places=2)
    coordinates: Optional[CoordinatesSchema] = None
    features: Optional[List[str]] = Field(None, min_length=1, max_length=10)
    amenities: Optional[List[str]] = Field(None, max_length=20)
    images: Optional[List[str]] = Field(None, max_length=5)
    expected_returns: Optional[ExpectedReturns] = None
    water_availability: Optional[str] = Field(None, max_length=100)
    cottage_permitted: Optional[bool] = None
    legal_status: Optional[Literal["clear", "pending", "disputed"]] = None
    featured: Optional[bool] = None
    active: Optional[bool] = None

    @field_validator("expected_returns")
    @classmethod
    def check_returns(cls, value):
        return check_expected_returns(value)


class ProjectFilterSchema(Schema):
    """Query parameters for project listings"""
    type: Optional[ProjectType] = None
    featured: Optional[bool] = None
    location: Optional[str] = Field(None, max_length=100)
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    limit: int = Field(20, ge=1, le=50)
    offset: int = Field(0, ge=0)


class ProjectResponseSchema(Schema):
    """Schema for project response"""
    id: UUID
    name: str
    slug: str
    description: str
    location: str
    state: str
    district: str
    project_type: str
    price_per_sq_ft: Decimal
    total_area: Optional[Decimal] = None
    available_area: Optional[Decimal] = None
    min_investment: Optional[Decimal] = None
    coordinates: Optional[CoordinatesSchema] = None
    features: List[str] = []
    amenities: List[str] = []
    images: List[str] = []
    expected_returns: Optional[ExpectedReturns] = None
    water_availability: str
    cottage_permitted: bool
    legal_status: str
    featured: bool
    active: bool
    view_count: int
    inquiry_count: int
    created_at: datetime
    updated_at: datetime


class ProjectListResponseSchema(Schema):
    data: List[ProjectResponseSchema]
    meta: PageMetaSchema


class ProjectDetailResponseSchema(Schema):
    data: ProjectResponseSchema
    message: Optional[str] = None


class FeaturedProjectsResponseSchema(Schema):
    data: List[ProjectResponseSchema]
