"""Time entry model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.employee import MAX_EMPLOYEE_ID


class TimeEntryStatus(str, Enum):
    """Completeness of an attendance record, derived from its clock times."""

    INCOMPLETE = "INCOMPLETE"
    COMPLETE = "COMPLETE"
    INVALID = "INVALID"


class TimeEntryBase(BaseModel):
    """Base time entry fields."""

    employee_id: int = Field(gt=0, le=MAX_EMPLOYEE_ID)
    date: str  # YYYY-MM-DD
    clock_in: str  # HH:MM:SS
    clock_out: Optional[str] = None


class TimeEntryCreate(TimeEntryBase):
    """Time entry creation model.

    Also used for candidate records produced by the spreadsheet parser.
    Status is derived, so it is not an accepted field.
    """

    model_config = ConfigDict(extra="forbid")


class TimeEntryUpdate(BaseModel):
    """Time entry update model - all fields optional."""

    model_config = ConfigDict(extra="forbid")

    employee_id: Optional[int] = Field(default=None, gt=0, le=MAX_EMPLOYEE_ID)
    date: Optional[str] = None
    clock_in: Optional[str] = None
    clock_out: Optional[str] = None


class TimeEntry(TimeEntryBase):
    """Full time entry model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    status: TimeEntryStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class ImportRowError(BaseModel):
    """A candidate record that was rejected during bulk import."""

    employee_id: int
    date: str
    error: str


class BulkImportResult(BaseModel):
    """Partial-failure report for a bulk import."""

    total: int = 0
    imported: int = 0
    failed: int = 0
    errors: list[ImportRowError] = []


class BulkImportResponse(BulkImportResult):
    """Bulk import report with a human readable summary."""

    message: str


class BulkDeleteRequest(BaseModel):
    """Request body for bulk deletion."""

    ids: list[str]


class BulkDeleteResult(BaseModel):
    """Partial-failure report for a bulk delete."""

    deleted: int = 0
    failed: int = 0
    errors: list[str] = []


class StatusCount(BaseModel):
    """Number of time entries in one status."""

    status: TimeEntryStatus
    count: int


class TimeEntryStatistics(BaseModel):
    """Aggregate counts over all time entries."""

    total: int
    by_status: list[StatusCount]
