"""
URL configuration for the Farmland Estates API.
"""
from django.urls import path
from ninja import NinjaAPI

from analytics.api import admin_router as admin_analytics_router
from authentication.api import router as auth_router
from content.api import (
    admin_blog_router,
    admin_testimonials_router,
    blog_router,
    chatbot_router,
    testimonials_router,
)
from core.handlers import register_exception_handlers
from core.schemas import HealthResponseSchema
from core.throttling import global_throttle
from leads.api import admin_router as admin_leads_router
from leads.api import router as leads_router
from projects.api import admin_router as admin_projects_router
from projects.api import router as projects_router
from services.storage import get_storage

# Create NinjaAPI instance
api = NinjaAPI(
    title="Farmland Estates API",
    description="Managed farmland listings, lead capture and site content",
    version="1.0.0",
    throttle=[global_throttle],
)
register_exception_handlers(api)

# Public routers
api.add_router("/auth", auth_router, tags=["Authentication"])
api.add_router("/projects", projects_router, tags=["Projects"])
api.add_router("/leads", leads_router, tags=["Leads"])
api.add_router("/blog", blog_router, tags=["Blog"])
api.add_router("/testimonials", testimonials_router, tags=["Testimonials"])
api.add_router("/chatbot", chatbot_router, tags=["Chatbot"])

# Admin routers (admin JWT required)
api.add_router("/admin/leads", admin_leads_router, tags=["Admin"])
api.add_router("/admin/projects", admin_projects_router, tags=["Admin"])
api.add_router("/admin/blog", admin_blog_router, tags=["Admin"])
api.add_router("/admin/testimonials", admin_testimonials_router, tags=["Admin"])
api.add_router("/admin/analytics", admin_analytics_router, tags=["Admin"])


@api.get("/health", response=HealthResponseSchema, tags=["Health"])
def health(request):
    """Database and cache reachability"""
    return get_storage().health_check()


urlpatterns = [
    path('api/', api.urls),
]
