"""Visitor record storage adapters."""

from visitor_analytics.adapters.storage.database_cleanup import cleanup_database
from visitor_analytics.adapters.storage.in_memory_visitor_repository import (
    InMemoryVisitorRepository,
)
from visitor_analytics.adapters.storage.mongo_connection import VISITORS_COLLECTION, MongoConnection
from visitor_analytics.adapters.storage.mongo_visitor_repository import MongoVisitorRepository

__all__ = [
    "VISITORS_COLLECTION",
    "InMemoryVisitorRepository",
    "MongoConnection",
    "MongoVisitorRepository",
    "cleanup_database",
]
