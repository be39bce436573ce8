"""Service wiring for request handlers."""
from fastapi import Depends

from app.config import settings
from app.database import get_database
from app.repositories.employees import MongoEmployeeDirectory
from app.repositories.time_entries import MongoTimeEntryRepository
from app.services.query_service import TimeEntryQueryService
from app.services.spreadsheet_service import SpreadsheetParser
from app.services.time_entry_service import TimeEntryService


def get_time_entry_service(db=Depends(get_database)) -> TimeEntryService:
    """Dependency to build the time entry service for a request."""
    return TimeEntryService(
        MongoTimeEntryRepository(db),
        MongoEmployeeDirectory(db),
    )


def get_query_service(db=Depends(get_database)) -> TimeEntryQueryService:
    """Dependency to build the query service for a request."""
    return TimeEntryQueryService(
        MongoTimeEntryRepository(db),
        MongoEmployeeDirectory(db),
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )


def get_spreadsheet_parser() -> SpreadsheetParser:
    """Dependency to get the spreadsheet parser."""
    return SpreadsheetParser()
