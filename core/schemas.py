from typing import Dict, Optional

from ninja import Schema


class PageMetaSchema(Schema):
    """Pagination metadata attached to list responses"""
    total: int
    count: int
    limit: int
    offset: int


class MessageResponseSchema(Schema):
    message: str


class ErrorResponseSchema(Schema):
    error: str
    code: str
    details: Optional[list] = None


class HealthResponseSchema(Schema):
    status: str
    timestamp: str
    checks: Dict[str, str]
