"""Pytest configuration and fixtures."""
import copy
from collections import Counter
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.exceptions import ConflictError, NotFoundError
from app.models.employee import Employee
from app.models.pagination import SortDirection
from app.models.time_entry import TimeEntry
from app.repositories.time_entries import SORT_FIELDS, EntryFilter


class InMemoryEmployees:
    """Employee directory backed by a dict."""

    def __init__(self, employee_ids=()):
        self.employees = {
            employee_id: Employee(_id=employee_id, first_name="Employee", last_name=str(employee_id))
            for employee_id in employee_ids
        }
        self.lookups = 0

    async def get(self, employee_id: int, session: Any = None) -> Employee:
        self.lookups += 1
        employee = self.employees.get(employee_id)
        if not employee:
            raise NotFoundError(f"Employee with ID {employee_id} not found")
        return employee


class InMemoryTimeEntries:
    """Time entry repository with the same contract as the MongoDB one.

    Transactions snapshot the store and restore it when the block raises.
    ``fail_on_insert`` makes the n-th insert raise a storage error.
    """

    def __init__(self):
        self.docs: dict[str, dict] = {}
        self.next_id = 0
        self.inserts = 0
        self.fail_on_insert: Optional[int] = None
        self.commits = 0
        self.rollbacks = 0
        self.accesses = 0

    def _to_entry(self, doc: dict) -> TimeEntry:
        return TimeEntry(**doc)

    @asynccontextmanager
    async def transaction(self):
        snapshot = copy.deepcopy(self.docs)
        try:
            yield "session"
        except BaseException:
            self.docs = snapshot
            self.rollbacks += 1
            raise
        self.commits += 1

    async def get(self, entry_id: str, session: Any = None) -> Optional[TimeEntry]:
        self.accesses += 1
        doc = self.docs.get(entry_id)
        return self._to_entry(doc) if doc else None

    async def find_by_employee_and_date(self, employee_id: int, date: str, session: Any = None):
        self.accesses += 1
        for doc in self.docs.values():
            if doc["employee_id"] == employee_id and doc["date"] == date:
                return self._to_entry(doc)
        return None

    def _check_unique(self, employee_id: int, date: str, exclude_id: Optional[str] = None):
        for entry_id, doc in self.docs.items():
            if entry_id != exclude_id and (doc["employee_id"], doc["date"]) == (employee_id, date):
                raise ConflictError(f"Time entry already exists for employee {employee_id} on {date}")

    async def insert(self, fields: dict, session: Any = None) -> TimeEntry:
        self.accesses += 1
        self.inserts += 1
        if self.fail_on_insert == self.inserts:
            raise RuntimeError("storage unavailable")

        self._check_unique(fields["employee_id"], fields["date"])
        self.next_id += 1
        entry_id = f"{self.next_id:024x}"
        now = datetime.utcnow()
        self.docs[entry_id] = {**fields, "_id": entry_id, "created_at": now, "updated_at": now}
        return self._to_entry(self.docs[entry_id])

    async def update(self, entry_id: str, changes: dict, session: Any = None):
        self.accesses += 1
        doc = self.docs.get(entry_id)
        if not doc:
            return None
        merged = {**doc, **changes, "updated_at": datetime.utcnow()}
        self._check_unique(merged["employee_id"], merged["date"], exclude_id=entry_id)
        self.docs[entry_id] = merged
        return self._to_entry(merged)

    async def delete(self, entry_id: str, session: Any = None) -> bool:
        self.accesses += 1
        return self.docs.pop(entry_id, None) is not None

    def _matches(self, doc: dict, entry_filter: EntryFilter) -> bool:
        if entry_filter.employee_id is not None and doc["employee_id"] != entry_filter.employee_id:
            return False
        if entry_filter.status is not None and doc["status"] != entry_filter.status.value:
            return False
        if entry_filter.date is not None and doc["date"] != entry_filter.date:
            return False
        if entry_filter.date_from is not None and doc["date"] < entry_filter.date_from:
            return False
        if entry_filter.date_to is not None and doc["date"] > entry_filter.date_to:
            return False
        return True

    async def find_page(self, entry_filter, sort, skip, limit):
        self.accesses += 1
        docs = [doc for doc in self.docs.values() if self._matches(doc, entry_filter)]
        docs.sort(key=lambda doc: doc["_id"])
        for field, direction in reversed(sort):
            key = SORT_FIELDS[field]
            docs.sort(
                key=lambda doc: (doc.get(key) is None, doc.get(key) or ""),
                reverse=direction == SortDirection.DESC,
            )
        return [self._to_entry(doc) for doc in docs[skip:skip + limit]], len(docs)

    async def count_by_status(self) -> dict[str, int]:
        self.accesses += 1
        return dict(Counter(doc["status"] for doc in self.docs.values()))


@pytest.fixture
def employees():
    """Employee directory knowing employees 1 to 5."""
    return InMemoryEmployees(employee_ids=range(1, 6))


@pytest.fixture
def entries():
    """Empty in-memory time entry repository."""
    return InMemoryTimeEntries()


@pytest.fixture
def time_entry_service(entries, employees):
    from app.services.time_entry_service import TimeEntryService

    return TimeEntryService(entries, employees)


@pytest.fixture
def query_service(entries, employees):
    from app.services.query_service import TimeEntryQueryService

    return TimeEntryQueryService(entries, employees, default_limit=20, max_limit=200)


@pytest_asyncio.fixture
async def app_client(entries, employees):
    """
    Create a test client backed by in-memory repositories.

    This fixture:
    - Points the service dependencies at the in-memory repositories
    - Yields an async HTTP client for testing
    - Removes the overrides afterwards
    """
    from app.dependencies import get_query_service, get_time_entry_service
    from app.main import app
    from app.services.query_service import TimeEntryQueryService
    from app.services.time_entry_service import TimeEntryService

    app.dependency_overrides[get_time_entry_service] = lambda: TimeEntryService(entries, employees)
    app.dependency_overrides[get_query_service] = lambda: TimeEntryQueryService(entries, employees)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
