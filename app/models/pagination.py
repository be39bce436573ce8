"""Pagination model definitions."""
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

from app.models.time_entry import TimeEntryStatus

T = TypeVar("T")


class SortDirection(str, Enum):
    """Sort direction for listings."""

    ASC = "ASC"
    DESC = "DESC"


class PageQuery(BaseModel):
    """Paging, sorting and filtering options for time entry listings.

    ``sort_by`` items use the ``field:DIRECTION`` form, e.g. ``date:DESC``.
    A ``limit`` of None means the configured default page size.
    """

    page: int = 1
    limit: Optional[int] = None
    sort_by: list[str] = []
    employee_id: Optional[int] = None
    status: Optional[TimeEntryStatus] = None
    date: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None


class PageMeta(BaseModel):
    """Pagination metadata returned alongside a page of results."""

    items_per_page: int
    total_items: int
    current_page: int
    total_pages: int
    sort_by: list[tuple[str, str]]


class Page(BaseModel, Generic[T]):
    """One page of results."""

    data: list[T]
    meta: PageMeta
