from typing import Any, Dict, List

from ninja import Schema


class TopProjectSchema(Schema):
    id: str
    slug: str
    name: str
    view_count: int
    inquiry_count: int


class LeadStatsSchema(Schema):
    total: int
    recent: int
    by_status: Dict[str, int]
    by_source: Dict[str, int]


class ProjectStatsSchema(Schema):
    active: int
    inactive: int
    featured: int
    top_viewed: List[TopProjectSchema]


class AnalyticsSummarySchema(Schema):
    period_days: int
    leads: LeadStatsSchema
    projects: ProjectStatsSchema
    views: Dict[str, int]
    users: Dict[str, int]
    events: Dict[str, Any]


class AnalyticsResponseSchema(Schema):
    data: AnalyticsSummarySchema
