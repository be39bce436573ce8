"""Existence and uniqueness checks for time entries."""
from typing import Any, Optional

from app.exceptions import ConflictError
from app.models.employee import Employee
from app.models.time_entry import TimeEntryCreate
from app.repositories.employees import EmployeeDirectory
from app.repositories.time_entries import TimeEntryRepository


class EntryResolver:
    """Checks a time entry against employees and existing entries.

    The checks only describe storage at call time. Callers that need
    check-then-write to hold must run both inside one transaction and pass
    its session here.
    """

    def __init__(self, employees: EmployeeDirectory, entries: TimeEntryRepository):
        self.employees = employees
        self.entries = entries

    async def ensure_employee_exists(self, employee_id: int, session: Any = None) -> Employee:
        """Raises NotFoundError if the employee is unknown."""
        return await self.employees.get(employee_id, session=session)

    async def ensure_day_available(
        self,
        employee_id: int,
        date: str,
        *,
        exclude_id: Optional[str] = None,
        session: Any = None,
    ) -> None:
        """
        Check that the employee has no time entry on the given date.

        Args:
            employee_id: Employee ID
            date: Attendance day (YYYY-MM-DD)
            exclude_id: Entry to ignore, used when updating that entry
            session: Optional transaction session

        Raises:
            ConflictError: If another entry exists for that day
        """
        existing = await self.entries.find_by_employee_and_date(
            employee_id, date, session=session
        )
        if existing and existing.id != exclude_id:
            raise ConflictError(
                f"Time entry already exists for employee {employee_id} on {date}"
            )

    async def check(self, candidate: TimeEntryCreate, session: Any = None) -> None:
        """
        Run both checks for a new time entry.

        Raises:
            NotFoundError: If the employee does not exist
            ConflictError: If the employee already has an entry that day
        """
        await self.ensure_employee_exists(candidate.employee_id, session=session)
        await self.ensure_day_available(candidate.employee_id, candidate.date, session=session)
