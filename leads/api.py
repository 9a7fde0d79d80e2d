import logging
from uuid import UUID

from ninja import Query, Router

from authentication.jwt_auth import admin_auth
from core.middleware import request_metadata
from core.schemas import ErrorResponseSchema
from core.throttling import global_throttle, strict_throttle
from leads.schemas import (
    LeadCreateSchema,
    LeadCreatedResponseSchema,
    LeadDetailResponseSchema,
    LeadFilterResponseSchema,
    LeadFilterSchema,
    LeadUpdateSchema,
)
from services.storage import get_storage

logger = logging.getLogger(__name__)

router = Router()
admin_router = Router(auth=admin_auth)


@router.post(
    "",
    response={
        201: LeadCreatedResponseSchema,
        400: ErrorResponseSchema,
        409: ErrorResponseSchema,
        429: ErrorResponseSchema,
    },
    throttle=[global_throttle, strict_throttle],
)
def create_lead(request, data: LeadCreateSchema):
    """
    Capture an enquiry from the website.

    The same email may only submit once per duplicate window (24h by default).
    """
    lead = get_storage().create_lead(data, request_metadata(request))
    return 201, {
        "data": {"id": lead.id},
        "message": "Thank you for your interest! We will contact you soon.",
    }


# Admin

@admin_router.get("", response=LeadFilterResponseSchema)
def list_leads(request, filters: Query[LeadFilterSchema]):
    """Leads, newest first"""
    page = get_storage().get_leads(filters)
    return {"data": page.items, "meta": page.meta()}


@admin_router.get("/{lead_id}", response={200: LeadDetailResponseSchema, 404: ErrorResponseSchema})
def get_lead(request, lead_id: UUID):
    return {"data": get_storage().get_lead(lead_id)}


@admin_router.put(
    "/{lead_id}",
    response={200: LeadDetailResponseSchema, 400: ErrorResponseSchema, 404: ErrorResponseSchema},
)
def update_lead(request, lead_id: UUID, data: LeadUpdateSchema):
    lead = get_storage().update_lead(lead_id, data)
    logger.info(f"Admin {request.auth.id} updated lead {lead.id}")
    return {"data": lead, "message": "Lead updated successfully"}
