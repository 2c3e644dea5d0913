"""MongoDB-backed visitor repository."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from pymongo import DESCENDING

from visitor_analytics.adapters.storage.mongo_connection import VISITORS_COLLECTION
from visitor_analytics.domain.errors import StoreUnavailableError
from visitor_analytics.domain.models import UNKNOWN, CountryStat, TimelineBucket, VisitorRecord

if TYPE_CHECKING:
    from pymongo.asynchronous.collection import AsyncCollection

    from visitor_analytics.adapters.storage.mongo_connection import MongoConnection


def timeline_pipeline(since: datetime, hourly: bool) -> list[dict[str, Any]]:
    """Aggregation grouping visits since ``since`` into UTC hour or day buckets."""
    group_id: dict[str, Any] = {
        "year": {"$year": "$timestamp"},
        "month": {"$month": "$timestamp"},
        "day": {"$dayOfMonth": "$timestamp"},
    }
    if hourly:
        group_id["hour"] = {"$hour": "$timestamp"}
    return [
        {"$match": {"timestamp": {"$gte": since}}},
        {"$group": {"_id": group_id, "count": {"$sum": 1}}},
        {"$sort": {"_id.year": 1, "_id.month": 1, "_id.day": 1, "_id.hour": 1}},
    ]


def country_pipeline(limit: int) -> list[dict[str, Any]]:
    """Aggregation counting visits per country with their distinct cities."""
    return [
        {
            "$group": {
                "_id": "$location.country",
                "count": {"$sum": 1},
                "cities": {"$addToSet": "$location.city"},
            }
        },
        {"$sort": {"count": -1}},
        {"$limit": limit},
    ]


class MongoVisitorRepository:
    """Stores visitor records as camelCase documents in the ``visitors`` collection."""

    def __init__(self, connection: MongoConnection) -> None:
        self.connection = connection

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    async def _collection(self) -> AsyncCollection:
        database = await self.connection.get_database()
        if database is None:
            raise StoreUnavailableError()
        return database[VISITORS_COLLECTION]

    async def add(self, record: VisitorRecord) -> None:
        collection = await self._collection()
        await collection.insert_one(record.model_dump(by_alias=True))

    async def count(self, since: datetime | None = None) -> int:
        collection = await self._collection()
        query = {"timestamp": {"$gte": since}} if since is not None else {}
        return await collection.count_documents(query)

    async def count_vpn(self) -> int:
        collection = await self._collection()
        return await collection.count_documents({"vpnInfo.isVPN": True})

    async def distinct_countries(self) -> list[str]:
        collection = await self._collection()
        return list(await collection.distinct("location.country"))

    async def recent(self, limit: int) -> list[VisitorRecord]:
        collection = await self._collection()
        cursor = collection.find({}, {"_id": 0}).sort("timestamp", DESCENDING).limit(limit)
        documents = await cursor.to_list(length=limit)
        return [VisitorRecord.model_validate(document) for document in documents]

    async def country_breakdown(self, limit: int) -> list[CountryStat]:
        collection = await self._collection()
        cursor = await collection.aggregate(country_pipeline(limit))
        return [
            CountryStat(
                country=row["_id"] or UNKNOWN,
                count=row["count"],
                cities=[city for city in row.get("cities", []) if city],
            )
            for row in await cursor.to_list(length=None)
        ]

    async def timeline(self, since: datetime, hourly: bool) -> list[TimelineBucket]:
        collection = await self._collection()
        cursor = await collection.aggregate(timeline_pipeline(since, hourly))
        return [
            TimelineBucket(**row["_id"], count=row["count"])
            for row in await cursor.to_list(length=None)
        ]
