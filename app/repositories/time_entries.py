"""Time entry storage - repository interface and MongoDB implementation."""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncContextManager, AsyncIterator, Optional, Protocol

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.exceptions import ConflictError
from app.models.pagination import SortDirection
from app.models.time_entry import TimeEntry, TimeEntryStatus

# Public sort field -> document field
SORT_FIELDS = {
    "id": "_id",
    "employee_id": "employee_id",
    "date": "date",
    "clock_in": "clock_in",
    "clock_out": "clock_out",
    "created_at": "created_at",
}


@dataclass(frozen=True)
class EntryFilter:
    """Field filters for time entry listings. None means unfiltered."""

    employee_id: Optional[int] = None
    status: Optional[TimeEntryStatus] = None
    date: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None


class TimeEntryRepository(Protocol):
    """Storage operations the attendance services rely on.

    Every method taking ``session`` runs inside that transaction when one is
    given.
    """

    def transaction(self) -> AsyncContextManager[Any]:
        """Open a unit of work that commits on exit and rolls back on error."""
        raise NotImplementedError

    async def get(self, entry_id: str, session: Any = None) -> Optional[TimeEntry]:
        raise NotImplementedError

    async def find_by_employee_and_date(
        self, employee_id: int, date: str, session: Any = None
    ) -> Optional[TimeEntry]:
        raise NotImplementedError

    async def insert(self, fields: dict, session: Any = None) -> TimeEntry:
        raise NotImplementedError

    async def update(
        self, entry_id: str, changes: dict, session: Any = None
    ) -> Optional[TimeEntry]:
        raise NotImplementedError

    async def delete(self, entry_id: str, session: Any = None) -> bool:
        raise NotImplementedError

    async def find_page(
        self,
        entry_filter: EntryFilter,
        sort: list[tuple[str, SortDirection]],
        skip: int,
        limit: int,
    ) -> tuple[list[TimeEntry], int]:
        raise NotImplementedError

    async def count_by_status(self) -> dict[str, int]:
        raise NotImplementedError


class MongoTimeEntryRepository:
    """Time entries stored in the ``time_entries`` MongoDB collection."""

    def __init__(self, db):
        """Initialize repository with database connection."""
        self.db = db
        self.time_entries = db["time_entries"]

    def _doc_to_entry(self, doc: dict) -> TimeEntry:
        """
        Convert database document to TimeEntry model.
        """
        return TimeEntry(
            _id=str(doc["_id"]),
            employee_id=doc["employee_id"],
            date=doc["date"],
            clock_in=doc["clock_in"],
            clock_out=doc.get("clock_out"),
            status=doc["status"],
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    def _object_id(self, entry_id: str) -> Optional[ObjectId]:
        # Malformed ids cannot match any document
        if not isinstance(entry_id, str) or not ObjectId.is_valid(entry_id):
            return None
        return ObjectId(entry_id)

    def _build_query(self, entry_filter: EntryFilter) -> dict:
        query: dict[str, Any] = {}

        if entry_filter.employee_id is not None:
            query["employee_id"] = entry_filter.employee_id
        if entry_filter.status is not None:
            query["status"] = entry_filter.status.value

        date_query = {}
        if entry_filter.date is not None:
            date_query["$eq"] = entry_filter.date
        if entry_filter.date_from is not None:
            date_query["$gte"] = entry_filter.date_from
        if entry_filter.date_to is not None:
            date_query["$lte"] = entry_filter.date_to
        if date_query:
            query["date"] = date_query

        return query

    async def ensure_indexes(self) -> None:
        """Create indexes; the unique index backs the one-entry-per-day rule."""
        await self.time_entries.create_index(
            [("employee_id", ASCENDING), ("date", ASCENDING)],
            unique=True,
            name="employee_date_unique",
        )
        await self.time_entries.create_index("date")
        await self.time_entries.create_index("status")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Any]:
        """
        Run a block inside a MongoDB multi-document transaction.

        Commits when the block exits normally and aborts when it raises.
        Requires a replica set or sharded deployment.
        """
        async with await self.db.client.start_session() as session:
            async with session.start_transaction():
                yield session

    async def get(self, entry_id: str, session: Any = None) -> Optional[TimeEntry]:
        object_id = self._object_id(entry_id)
        if object_id is None:
            return None

        doc = await self.time_entries.find_one({"_id": object_id}, session=session)
        return self._doc_to_entry(doc) if doc else None

    async def find_by_employee_and_date(
        self, employee_id: int, date: str, session: Any = None
    ) -> Optional[TimeEntry]:
        doc = await self.time_entries.find_one(
            {"employee_id": employee_id, "date": date},
            session=session,
        )
        return self._doc_to_entry(doc) if doc else None

    async def insert(self, fields: dict, session: Any = None) -> TimeEntry:
        """
        Insert a time entry and stamp its timestamps.

        Raises:
            ConflictError: If the unique (employee_id, date) index rejects it
        """
        now = datetime.utcnow()
        entry_doc = {
            **fields,
            "created_at": now,
            "updated_at": now,
        }

        try:
            result = await self.time_entries.insert_one(entry_doc, session=session)
        except DuplicateKeyError as e:
            raise ConflictError(
                f"Time entry already exists for employee {fields['employee_id']} "
                f"on {fields['date']}"
            ) from e

        entry_doc["_id"] = result.inserted_id
        return self._doc_to_entry(entry_doc)

    async def update(
        self, entry_id: str, changes: dict, session: Any = None
    ) -> Optional[TimeEntry]:
        """
        Apply changes to a time entry.

        Returns:
            The updated entry, or None if it does not exist

        Raises:
            ConflictError: If the unique (employee_id, date) index rejects it
        """
        object_id = self._object_id(entry_id)
        if object_id is None:
            return None

        update_doc = {
            **changes,
            "updated_at": datetime.utcnow(),
        }

        try:
            updated_doc = await self.time_entries.find_one_and_update(
                {"_id": object_id},
                {"$set": update_doc},
                return_document=ReturnDocument.AFTER,
                session=session,
            )
        except DuplicateKeyError as e:
            raise ConflictError(
                "Time entry already exists for this employee on this date"
            ) from e

        return self._doc_to_entry(updated_doc) if updated_doc else None

    async def delete(self, entry_id: str, session: Any = None) -> bool:
        object_id = self._object_id(entry_id)
        if object_id is None:
            return False

        result = await self.time_entries.delete_one({"_id": object_id}, session=session)
        return result.deleted_count > 0

    async def find_page(
        self,
        entry_filter: EntryFilter,
        sort: list[tuple[str, SortDirection]],
        skip: int,
        limit: int,
    ) -> tuple[list[TimeEntry], int]:
        """
        Fetch one page of time entries.

        Returns:
            Tuple of (entries on the page, total matching entries)
        """
        query = self._build_query(entry_filter)

        mongo_sort = [
            (SORT_FIELDS[field], ASCENDING if direction == SortDirection.ASC else DESCENDING)
            for field, direction in sort
        ]
        # Stable order across pages
        if not any(field == "_id" for field, _ in mongo_sort):
            mongo_sort.append(("_id", ASCENDING))

        cursor = self.time_entries.find(query).sort(mongo_sort).skip(skip).limit(limit)
        entry_docs = await cursor.to_list(length=limit)
        total = await self.time_entries.count_documents(query)

        return [self._doc_to_entry(doc) for doc in entry_docs], total

    async def count_by_status(self) -> dict[str, int]:
        """Count time entries per status with a single group-by aggregation."""
        cursor = self.time_entries.aggregate([
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        ])
        docs = await cursor.to_list(length=None)
        return {doc["_id"]: doc["count"] for doc in docs}
