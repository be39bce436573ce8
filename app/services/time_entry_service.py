"""Time entry service - business logic for attendance records."""
from typing import Any, Optional

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.time_entry import (
    BulkDeleteResult,
    BulkImportResult,
    ImportRowError,
    TimeEntry,
    TimeEntryCreate,
    TimeEntryUpdate,
)
from app.repositories.employees import EmployeeDirectory
from app.repositories.time_entries import TimeEntryRepository
from app.services.entry_resolver import EntryResolver
from app.utils.logging import get_logger
from app.utils.normalize import (
    is_blank,
    normalize_date,
    normalize_employee_id,
    normalize_time,
)
from app.utils.status import classify_status

logger = get_logger(__name__)

# Errors that reject a single row of a bulk import without aborting it
ROW_ERRORS = (NotFoundError, ConflictError, ValidationError)


class TimeEntryService:
    """Service for creating, importing, updating and deleting time entries."""

    def __init__(
        self,
        entries: TimeEntryRepository,
        employees: EmployeeDirectory,
        resolver: Optional[EntryResolver] = None,
    ):
        """Initialize service with its storage collaborators."""
        self.entries = entries
        self.employees = employees
        self.resolver = resolver or EntryResolver(employees, entries)

    def _normalize_clock_out(self, value: Any) -> Optional[str]:
        if is_blank(value):
            return None
        return normalize_time(value, "clock_out")

    def _normalize_create(self, entry_create: TimeEntryCreate) -> TimeEntryCreate:
        if is_blank(entry_create.clock_in):
            raise ValidationError("clock_in is required")

        return TimeEntryCreate(
            employee_id=normalize_employee_id(entry_create.employee_id),
            date=normalize_date(entry_create.date, "date"),
            clock_in=normalize_time(entry_create.clock_in, "clock_in"),
            clock_out=self._normalize_clock_out(entry_create.clock_out),
        )

    def _to_fields(self, candidate: TimeEntryCreate) -> dict:
        # Status is always derived here, right before the write
        status = classify_status(candidate.clock_in, candidate.clock_out)
        return {
            "employee_id": candidate.employee_id,
            "date": candidate.date,
            "clock_in": candidate.clock_in,
            "clock_out": candidate.clock_out,
            "status": status.value,
        }

    async def create_entry(self, entry_create: TimeEntryCreate) -> TimeEntry:
        """
        Create a single time entry.

        Args:
            entry_create: Time entry creation data

        Returns:
            Created time entry

        Raises:
            ValidationError: If a field is malformed
            NotFoundError: If the employee does not exist
            ConflictError: If the employee already has an entry that day
        """
        candidate = self._normalize_create(entry_create)
        await self.resolver.check(candidate)
        return await self.entries.insert(self._to_fields(candidate))

    async def bulk_import(self, candidates: list[TimeEntryCreate]) -> BulkImportResult:
        """
        Import parsed time entries inside one transaction.

        Rows are processed in order, so a row sees entries written by earlier
        rows of the same batch. A row rejected by the existence or duplicate
        checks is reported and skipped; any other failure aborts the batch,
        rolls back every row and propagates.

        Args:
            candidates: Normalized candidate records

        Returns:
            Import report with per-row errors
        """
        result = BulkImportResult(total=len(candidates))

        try:
            async with self.entries.transaction() as session:
                for candidate in candidates:
                    try:
                        await self.resolver.check(candidate, session=session)
                    except ROW_ERRORS as e:
                        result.failed += 1
                        result.errors.append(
                            ImportRowError(
                                employee_id=candidate.employee_id,
                                date=candidate.date,
                                error=e.message,
                            )
                        )
                        continue

                    await self.entries.insert(self._to_fields(candidate), session=session)
                    result.imported += 1
        except Exception:
            logger.exception(
                "bulk_import_aborted",
                total=result.total,
                processed=result.imported + result.failed,
            )
            raise

        logger.info(
            "bulk_import_completed",
            total=result.total,
            imported=result.imported,
            failed=result.failed,
        )
        return result

    async def get_entry(self, entry_id: str) -> TimeEntry:
        """
        Get a time entry by ID.

        Raises:
            NotFoundError: If the entry does not exist
        """
        entry = await self.entries.get(entry_id)
        if not entry:
            raise NotFoundError(f"Time entry with ID {entry_id} not found")
        return entry

    async def update_entry(self, entry_id: str, entry_update: TimeEntryUpdate) -> TimeEntry:
        """
        Update a time entry.

        Only fields present in the update are changed; an explicit null
        clears clock_out. Moving the entry to another employee or day
        re-runs the existence and duplicate checks, and the status is
        re-derived from the resulting clock times.

        Args:
            entry_id: Time entry ID
            entry_update: Update data

        Returns:
            Updated time entry

        Raises:
            NotFoundError: If the entry or the new employee does not exist
            ConflictError: If the change collides with another entry
            ValidationError: If a field is malformed
        """
        existing = await self.get_entry(entry_id)
        changes = entry_update.model_dump(exclude_unset=True)

        for field in ("employee_id", "date", "clock_in"):
            if field in changes and is_blank(changes[field]):
                raise ValidationError(f"{field} cannot be empty")
        if "employee_id" in changes:
            changes["employee_id"] = normalize_employee_id(changes["employee_id"])
        if "date" in changes:
            changes["date"] = normalize_date(changes["date"], "date")
        if "clock_in" in changes:
            changes["clock_in"] = normalize_time(changes["clock_in"], "clock_in")
        if "clock_out" in changes:
            changes["clock_out"] = self._normalize_clock_out(changes["clock_out"])

        employee_id = changes.get("employee_id", existing.employee_id)
        work_date = changes.get("date", existing.date)

        if employee_id != existing.employee_id:
            await self.resolver.ensure_employee_exists(employee_id)
        if (employee_id, work_date) != (existing.employee_id, existing.date):
            await self.resolver.ensure_day_available(
                employee_id, work_date, exclude_id=existing.id
            )

        status = classify_status(
            changes.get("clock_in", existing.clock_in),
            changes.get("clock_out", existing.clock_out),
        )
        changes["status"] = status.value

        updated = await self.entries.update(existing.id, changes)
        if not updated:
            raise NotFoundError(f"Time entry with ID {entry_id} not found")
        return updated

    async def delete_entry(self, entry_id: str) -> None:
        """
        Delete a time entry (hard delete).

        Raises:
            NotFoundError: If the entry does not exist
        """
        deleted = await self.entries.delete(entry_id)
        if not deleted:
            raise NotFoundError(f"Time entry with ID {entry_id} not found")
        logger.info("time_entry_deleted", entry_id=entry_id)

    async def bulk_delete(self, ids: list[str]) -> BulkDeleteResult:
        """
        Delete several time entries independently.

        Unlike bulk import this is not transactional: each id is deleted on
        its own and a missing id is reported without stopping the rest.

        Raises:
            ValidationError: If ids is not a non-empty list
        """
        if not isinstance(ids, list) or not ids:
            raise ValidationError("ids must be a non-empty array")

        result = BulkDeleteResult()
        for entry_id in ids:
            try:
                await self.delete_entry(entry_id)
                result.deleted += 1
            except (NotFoundError, ValidationError) as e:
                result.failed += 1
                result.errors.append(f"ID {entry_id}: {e.message}")

        logger.info("bulk_delete_completed", deleted=result.deleted, failed=result.failed)
        return result
