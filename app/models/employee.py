"""Employee model definitions.

Employees are owned by the HR master-data service; this service only reads
them to confirm that a time entry references a known employee.
"""
from typing import Optional

from pydantic import BaseModel, Field

# Employee ids are stored as signed 64-bit BSON integers
MAX_EMPLOYEE_ID = 2**63 - 1


class Employee(BaseModel):
    """Employee record as stored in the employees collection."""

    id: int = Field(alias="_id", serialization_alias="id")
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    department_id: Optional[int] = None
    is_active: bool = True

    model_config = {"populate_by_name": True}

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
