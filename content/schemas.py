from datetime import datetime
from typing import List, Optional
from uuid import UUID

from ninja import Field, Schema

from core.schemas import PageMetaSchema
from projects.schemas import SLUG_PATTERN


# Blog

class BlogPostCreateSchema(Schema):
    title: str = Field(..., min_length=5, max_length=200)
    slug: str = Field(..., max_length=255, pattern=SLUG_PATTERN)
    excerpt: str = Field("", max_length=300)
    content: str = Field(..., min_length=100)
    featured_image: str = Field("", max_length=200)
    category: str = Field(..., min_length=2, max_length=100)
    tags: List[str] = Field(default_factory=list, max_length=5)
    featured: bool = False
    published: bool = False
    published_at: Optional[datetime] = None
    reading_time: Optional[int] = Field(None, ge=1)


class BlogPostUpdateSchema(Schema):
    title: Optional[str] = Field(None, min_length=5, max_length=200)
    excerpt: Optional[str] = Field(None, max_length=300)
    content: Optional[str] = Field(None, min_length=100)
    featured_image: Optional[str] = Field(None, max_length=200)
    category: Optional[str] = Field(None, min_length=2, max_length=100)
    tags: Optional[List[str]] = Field(None, max_length=5)
    featured: Optional[bool] = None
    published: Optional[bool] = None
    published_at: Optional[datetime] = None
    reading_time: Optional[int] = Field(None, ge=1)


class BlogFilterSchema(Schema):
    category: Optional[str] = Field(None, max_length=100)
    tag: Optional[str] = Field(None, max_length=50)
    featured: Optional[bool] = None
    limit: int = Field(10, ge=1, le=20)
    offset: int = Field(0, ge=0)


class AdminBlogFilterSchema(BlogFilterSchema):
    published: Optional[bool] = None


class BlogPostResponseSchema(Schema):
    id: UUID
    title: str
    slug: str
    excerpt: str
    content: str
    featured_image: str
    category: str
    tags: List[str] = []
    author_id: Optional[UUID] = None
    featured: bool
    published: bool
    published_at: Optional[datetime] = None
    reading_time: Optional[int] = None
    view_count: int
    created_at: datetime
    updated_at: datetime


class BlogPostListResponseSchema(Schema):
    data: List[BlogPostResponseSchema]
    meta: PageMetaSchema


class BlogPostDetailResponseSchema(Schema):
    data: BlogPostResponseSchema
    message: Optional[str] = None


# Testimonials

class TestimonialCreateSchema(Schema):
    name: str = Field(..., min_length=2, max_length=100)
    designation: str = Field("", max_length=100)
    location: str = Field("", max_length=100)
    title: str = Field("", max_length=200)
    content: str = Field(..., min_length=10, max_length=500)
    rating: int = Field(..., ge=1, le=5)
    project_id: Optional[UUID] = None
    featured: bool = False
    approved: bool = False
    active: bool = True
    source: str = Field("direct", max_length=50)


class TestimonialUpdateSchema(Schema):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    designation: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, min_length=10, max_length=500)
    rating: Optional[int] = Field(None, ge=1, le=5)
    project_id: Optional[UUID] = None
    featured: Optional[bool] = None
    approved: Optional[bool] = None
    active: Optional[bool] = None


class TestimonialResponseSchema(Schema):
    id: UUID
    name: str
    designation: str
    location: str
    title: str
    content: str
    rating: int
    project_id: Optional[UUID] = None
    featured: bool
    approved: bool
    active: bool
    source: str
    created_at: datetime


class TestimonialListResponseSchema(Schema):
    data: List[TestimonialResponseSchema]
    meta: dict


class TestimonialDetailResponseSchema(Schema):
    data: TestimonialResponseSchema
    message: Optional[str] = None


# Chatbot

class ChatbotRequestSchema(Schema):
    message: str = Field(..., min_length=1, max_length=500)
    language: str = Field("en", max_length=10)


class ChatbotResponseSchema(Schema):
    response: str
    suggestions: List[str] = []
