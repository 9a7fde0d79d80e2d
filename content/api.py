import logging
from typing import Optional
from uuid import UUID

from ninja import Query, Router

from analytics.models import AnalyticsEvent
from authentication.jwt_auth import admin_auth
from content.schemas import (
    AdminBlogFilterSchema,
    BlogFilterSchema,
    BlogPostCreateSchema,
    BlogPostDetailResponseSchema,
    BlogPostListResponseSchema,
    BlogPostUpdateSchema,
    ChatbotRequestSchema,
    ChatbotResponseSchema,
    TestimonialCreateSchema,
    TestimonialDetailResponseSchema,
    TestimonialListResponseSchema,
    TestimonialUpdateSchema,
)
from core.middleware import request_metadata
from core.schemas import ErrorResponseSchema
from services.chatbot import get_chatbot
from services.storage import get_storage

logger = logging.getLogger(__name__)

blog_router = Router()
testimonials_router = Router()
chatbot_router = Router()
admin_blog_router = Router(auth=admin_auth)
admin_testimonials_router = Router(auth=admin_auth)


# Blog

@blog_router.get("", response=BlogPostListResponseSchema)
def list_blog_posts(request, filters: Query[BlogFilterSchema]):
    """Published posts, newest first; scheduled posts stay hidden until their publish time"""
    page = get_storage().get_blog_posts(filters)
    return {"data": page.items, "meta": page.meta()}


@blog_router.get("/{slug}", response={200: BlogPostDetailResponseSchema, 404: ErrorResponseSchema})
def get_blog_post(request, slug: str):
    storage = get_storage()
    post = storage.get_blog_post_by_slug(slug)
    storage.record_blog_view(post)
    return {"data": post}


@admin_blog_router.get("", response=BlogPostListResponseSchema)
def admin_list_blog_posts(request, filters: Query[AdminBlogFilterSchema]):
    page = get_storage().get_blog_posts(filters, published_only=False)
    return {"data": page.items, "meta": page.meta()}


@admin_blog_router.post("", response={201: BlogPostDetailResponseSchema, 409: ErrorResponseSchema})
def create_blog_post(request, data: BlogPostCreateSchema):
    post = get_storage().create_blog_post(data, author=request.auth)
    return 201, {"data": post, "message": "Blog post created successfully"}


@admin_blog_router.get("/{post_id}", response={200: BlogPostDetailResponseSchema, 404: ErrorResponseSchema})
def admin_get_blog_post(request, post_id: UUID):
    return {"data": get_storage().get_blog_post(post_id)}


@admin_blog_router.put("/{post_id}", response={200: BlogPostDetailResponseSchema, 404: ErrorResponseSchema})
def update_blog_post(request, post_id: UUID, data: BlogPostUpdateSchema):
    post = get_storage().update_blog_post(post_id, data)
    return {"data": post, "message": "Blog post updated successfully"}


@admin_blog_router.delete("/{post_id}", response={200: BlogPostDetailResponseSchema, 404: ErrorResponseSchema})
def delete_blog_post(request, post_id: UUID):
    """Unpublish a post; the row is kept"""
    post = get_storage().unpublish_blog_post(post_id)
    return {"data": post, "message": "Blog post unpublished successfully"}


# Testimonials

@testimonials_router.get("", response=TestimonialListResponseSchema)
def list_testimonials(request, featured: Optional[bool] = None):
    """Approved, active testimonials"""
    items = get_storage().get_testimonials(featured=featured)
    return {"data": items, "meta": {"count": len(items)}}


@admin_testimonials_router.get("", response=TestimonialListResponseSchema)
def admin_list_testimonials(request, approved: Optional[bool] = None, featured: Optional[bool] = None):
    items = get_storage().get_testimonials(featured=featured, public=False, approved=approved)
    return {"data": items, "meta": {"count": len(items)}}


@admin_testimonials_router.post("", response={201: TestimonialDetailResponseSchema, 400: ErrorResponseSchema})
def create_testimonial(request, data: TestimonialCreateSchema):
    testimonial = get_storage().create_testimonial(data)
    return 201, {"data": testimonial, "message": "Testimonial created successfully"}


@admin_testimonials_router.put(
    "/{testimonial_id}", response={200: TestimonialDetailResponseSchema, 404: ErrorResponseSchema}
)
def update_testimonial(request, testimonial_id: UUID, data: TestimonialUpdateSchema):
    testimonial = get_storage().update_testimonial(testimonial_id, data)
    return {"data": testimonial, "message": "Testimonial updated successfully"}


@admin_testimonials_router.delete(
    "/{testimonial_id}", response={200: TestimonialDetailResponseSchema, 404: ErrorResponseSchema}
)
def delete_testimonial(request, testimonial_id: UUID):
    testimonial = get_storage().deactivate_testimonial(testimonial_id)
    return {"data": testimonial, "message": "Testimonial deactivated successfully"}


# Chatbot

@chatbot_router.post("", response=ChatbotResponseSchema)
def chat(request, data: ChatbotRequestSchema):
    reply = get_chatbot().respond(data.message, language=data.language)
    get_storage().record_event(
        AnalyticsEvent.EVENT_CHATBOT_MESSAGE,
        ip_address=request_metadata(request)["ip_address"],
        metadata={"language": data.language, "length": len(data.message)},
    )
    return reply
