from ninja import Query, Router

from analytics.schemas import AnalyticsResponseSchema
from authentication.jwt_auth import admin_auth
from services.storage import get_storage

admin_router = Router(auth=admin_auth)


@admin_router.get("", response=AnalyticsResponseSchema)
def analytics_summary(request, days: int = Query(30, ge=1, le=365)):
    """Lead, project and event counts over the last ``days`` days"""
    return {"data": get_storage().get_analytics_summary(days=days)}
