"""Query service - listings and statistics for time entries."""
import math
from typing import Optional

from app.config import settings
from app.exceptions import ValidationError
from app.models.pagination import Page, PageMeta, PageQuery, SortDirection
from app.models.time_entry import StatusCount, TimeEntry, TimeEntryStatistics, TimeEntryStatus
from app.repositories.employees import EmployeeDirectory
from app.repositories.time_entries import SORT_FIELDS, EntryFilter, TimeEntryRepository
from app.utils.normalize import ensure_iso_date

DEFAULT_SORT = [("date", SortDirection.DESC)]


class TimeEntryQueryService:
    """Service for reading time entries."""

    def __init__(
        self,
        entries: TimeEntryRepository,
        employees: EmployeeDirectory,
        *,
        default_limit: Optional[int] = None,
        max_limit: Optional[int] = None,
    ):
        """Initialize service with its storage collaborators and page limits."""
        self.entries = entries
        self.employees = employees
        self.default_limit = default_limit or settings.default_page_size
        self.max_limit = max_limit or settings.max_page_size

    def _parse_sort(self, sort_by: list[str]) -> list[tuple[str, SortDirection]]:
        """
        Parse ``field:DIRECTION`` sort expressions.

        A bare field name sorts ascending.

        Raises:
            ValidationError: If a field is not sortable or a direction is unknown
        """
        if not sort_by:
            return list(DEFAULT_SORT)

        sort = []
        for expression in sort_by:
            field, _, direction = expression.partition(":")
            field = field.strip()
            direction = (direction.strip() or SortDirection.ASC.value).upper()

            if field not in SORT_FIELDS:
                raise ValidationError(
                    f"Cannot sort by {field}. Sortable fields: {', '.join(SORT_FIELDS)}"
                )
            if direction not in SortDirection.__members__:
                raise ValidationError(f"Invalid sort direction: {direction}. Expected ASC or DESC")

            sort.append((field, SortDirection(direction)))
        return sort

    def _build_filter(self, query: PageQuery, **overrides) -> EntryFilter:
        values = {
            "employee_id": query.employee_id,
            "status": query.status,
            "date": query.date,
            "date_from": query.date_from,
            "date_to": query.date_to,
        }
        values.update(overrides)

        for field in ("date", "date_from", "date_to"):
            if values[field] is not None:
                ensure_iso_date(values[field], field)

        return EntryFilter(**values)

    async def _paginate(self, query: PageQuery, entry_filter: EntryFilter) -> Page[TimeEntry]:
        if query.page < 1:
            raise ValidationError("page must be at least 1")
        if query.limit is not None and query.limit < 1:
            raise ValidationError("limit must be at least 1")

        limit = min(query.limit or self.default_limit, self.max_limit)
        sort = self._parse_sort(query.sort_by)

        entries, total = await self.entries.find_page(
            entry_filter,
            sort,
            skip=(query.page - 1) * limit,
            limit=limit,
        )

        return Page[TimeEntry](
            data=entries,
            meta=PageMeta(
                items_per_page=limit,
                total_items=total,
                current_page=query.page,
                total_pages=math.ceil(total / limit),
                sort_by=[(field, direction.value) for field, direction in sort],
            ),
        )

    async def list_entries(self, query: PageQuery) -> Page[TimeEntry]:
        """
        List time entries with filtering, sorting and pagination.

        Args:
            query: Paging, sorting and filter options

        Returns:
            One page of time entries, newest date first by default
        """
        return await self._paginate(query, self._build_filter(query))

    async def list_by_employee(self, employee_id: int, query: PageQuery) -> Page[TimeEntry]:
        """
        List the time entries of one employee.

        Raises:
            NotFoundError: If the employee does not exist
        """
        await self.employees.get(employee_id)
        return await self._paginate(query, self._build_filter(query, employee_id=employee_id))

    async def list_by_date_range(
        self, start_date: str, end_date: str, query: PageQuery
    ) -> Page[TimeEntry]:
        """
        List time entries between two dates, both inclusive.

        Both bounds are validated before storage is queried. A reversed
        range is rejected rather than answered with an empty page.

        Raises:
            ValidationError: If a bound is not YYYY-MM-DD or start is after end
        """
        ensure_iso_date(start_date, "start_date")
        ensure_iso_date(end_date, "end_date")
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date")

        entry_filter = self._build_filter(query, date_from=start_date, date_to=end_date)
        return await self._paginate(query, entry_filter)

    async def statistics(self) -> TimeEntryStatistics:
        """
        Count time entries overall and per status.

        Returns:
            Statistics where total is the sum of the per-status counts
        """
        counts = await self.entries.count_by_status()
        by_status = [
            StatusCount(status=status, count=counts.get(status.value, 0))
            for status in TimeEntryStatus
        ]
        return TimeEntryStatistics(
            total=sum(item.count for item in by_status),
            by_status=by_status,
        )
