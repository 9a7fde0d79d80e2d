import logging
from uuid import UUID

from ninja import Query, Router

from authentication.jwt_auth import admin_auth
from core.middleware import request_metadata
from core.schemas import ErrorResponseSchema
from projects.schemas import (
    FeaturedProjectsResponseSchema,
    ProjectCreateSchema,
    ProjectDetailResponseSchema,
    ProjectFilterSchema,
    ProjectListResponseSchema,
    ProjectUpdateSchema,
)
from services.storage import get_storage

logger = logging.getLogger(__name__)

router = Router()
admin_router = Router(auth=admin_auth)


@router.get("", response=ProjectListResponseSchema)
def list_projects(request, filters: Query[ProjectFilterSchema]):
    """Active projects, featured first, then by name"""
    page = get_storage().get_projects(filters)
    return {"data": page.items, "meta": page.meta()}


@router.get("/featured", response=FeaturedProjectsResponseSchema)
def featured_projects(request, limit: int = Query(6, ge=1, le=20)):
    return {"data": get_storage().get_featured_projects(limit=limit)}


@router.get("/{slug}", response={200: ProjectDetailResponseSchema, 404: ErrorResponseSchema})
def get_project(request, slug: str):
    """Project detail by slug; counts a view for the project"""
    storage = get_storage()
    project = storage.get_project_by_slug(slug)
    storage.record_project_view(project, **request_metadata(request))
    return {"data": project}


# Admin

@admin_router.get("", response=ProjectListResponseSchema)
def admin_list_projects(request, filters: Query[ProjectFilterSchema]):
    """All projects including deactivated ones"""
    page = get_storage().get_projects(filters, include_inactive=True)
    return {"data": page.items, "meta": page.meta()}


@admin_router.post("", response={201: ProjectDetailResponseSchema, 409: ErrorResponseSchema})
def create_project(request, data: ProjectCreateSchema):
    project = get_storage().create_project(data, created_by=request.auth)
    logger.info(f"Admin {request.auth.id} created project {project.slug}")
    return 201, {"data": project, "message": "Project created successfully"}


@admin_router.get("/{project_id}", response={200: ProjectDetailResponseSchema, 404: ErrorResponseSchema})
def admin_get_project(request, project_id: UUID):
    return {"data": get_storage().get_project(project_id)}


@admin_router.put("/{project_id}", response={200: ProjectDetailResponseSchema, 404: ErrorResponseSchema})
def update_project(request, project_id: UUID, data: ProjectUpdateSchema):
    project = get_storage().update_project(project_id, data)
    return {"data": project, "message": "Project updated successfully"}


@admin_router.delete("/{project_id}", response={200: ProjectDetailResponseSchema, 404: ErrorResponseSchema})
def delete_project(request, project_id: UUID):
    """Deactivate a project; it is kept for existing leads and analytics"""
    project = get_storage().delete_project(project_id)
    logger.info(f"Admin {request.auth.id} deactivated project {project.slug}")
    return {"data": project, "message": "Project deactivated successfully"}
