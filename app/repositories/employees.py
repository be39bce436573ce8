"""Employee lookups against the HR master data."""
from typing import Any, Protocol

from app.exceptions import NotFoundError
from app.models.employee import Employee


class EmployeeDirectory(Protocol):
    """Read-only access to employees owned by the HR master-data service."""

    async def get(self, employee_id: int, session: Any = None) -> Employee:
        """Return the employee or raise NotFoundError."""
        raise NotImplementedError


class MongoEmployeeDirectory:
    """Employees stored in the ``employees`` collection, keyed by integer id."""

    def __init__(self, db):
        """Initialize directory with database connection."""
        self.db = db
        self.employees = db["employees"]

    async def get(self, employee_id: int, session: Any = None) -> Employee:
        """
        Get an employee by id.

        Args:
            employee_id: Employee ID
            session: Optional transaction session

        Returns:
            Employee object

        Raises:
            NotFoundError: If the employee does not exist
        """
        employee_doc = await self.employees.find_one({"_id": employee_id}, session=session)
        if not employee_doc:
            raise NotFoundError(f"Employee with ID {employee_id} not found")

        return Employee(**employee_doc)
