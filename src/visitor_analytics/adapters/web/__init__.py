"""Starlette web adapter."""

from visitor_analytics.adapters.web.rate_limit_middleware import RateLimitMiddleware
from visitor_analytics.adapters.web.request_metadata import (
    metadata_from_request,
    metadata_from_scope,
)
from visitor_analytics.adapters.web.visitor_api import VisitorApi, create_app

__all__ = [
    "RateLimitMiddleware",
    "VisitorApi",
    "create_app",
    "metadata_from_request",
    "metadata_from_scope",
]
