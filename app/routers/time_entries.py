"""Time entry endpoints - attendance records, imports and statistics."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Path, Query, Response, UploadFile, status
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.dependencies import get_query_service, get_spreadsheet_parser, get_time_entry_service
from app.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from app.models.employee import MAX_EMPLOYEE_ID
from app.models.pagination import Page, PageQuery
from app.models.time_entry import (
    BulkDeleteRequest,
    BulkDeleteResult,
    BulkImportResponse,
    TimeEntry,
    TimeEntryCreate,
    TimeEntryStatistics,
    TimeEntryStatus,
    TimeEntryUpdate,
)
from app.services.query_service import TimeEntryQueryService
from app.services.spreadsheet_service import SpreadsheetParser
from app.services.time_entry_service import TimeEntryService


router = APIRouter(prefix="/time-entries", tags=["time-entries"])

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
# Some browsers label .xlsx uploads as ms-excel; legacy .xls files still fail to parse
ALLOWED_UPLOAD_TYPES = {XLSX_CONTENT_TYPE, "application/vnd.ms-excel"}


def to_http_exception(error: DomainError) -> HTTPException:
    """Translate a domain error into the matching HTTP error."""
    if isinstance(error, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ConflictError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    detail = error.message
    if isinstance(error, ValidationError) and error.errors:
        detail = {"message": error.message, "errors": error.errors}

    return HTTPException(status_code=status_code, detail=detail)


def get_page_query(
    page: int = Query(1, description="Page number"),
    limit: Optional[int] = Query(None, description="Items per page (max 200)"),
    sort_by: Optional[list[str]] = Query(None, description="e.g. date:DESC"),
    employee_id: Optional[int] = Query(None, gt=0, le=MAX_EMPLOYEE_ID),
    status: Optional[TimeEntryStatus] = Query(None),
    date: Optional[str] = Query(None, description="Exact date (YYYY-MM-DD)"),
    date_from: Optional[str] = Query(None, description="Earliest date (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="Latest date (YYYY-MM-DD)"),
) -> PageQuery:
    """Collect listing query parameters."""
    return PageQuery(
        page=page,
        limit=limit,
        sort_by=sort_by or [],
        employee_id=employee_id,
        status=status,
        date=date,
        date_from=date_from,
        date_to=date_to,
    )


def get_employee_page_query(
    page: int = Query(1, description="Page number"),
    limit: Optional[int] = Query(None, description="Items per page (max 200)"),
    sort_by: Optional[list[str]] = Query(None, description="e.g. date:DESC"),
    status: Optional[TimeEntryStatus] = Query(None),
    date: Optional[str] = Query(None, description="Exact date (YYYY-MM-DD)"),
    date_from: Optional[str] = Query(None, description="Earliest date (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="Latest date (YYYY-MM-DD)"),
) -> PageQuery:
    """Collect listing query parameters for a single employee."""
    return PageQuery(
        page=page,
        limit=limit,
        sort_by=sort_by or [],
        status=status,
        date=date,
        date_from=date_from,
        date_to=date_to,
    )


@router.post("", response_model=TimeEntry, status_code=status.HTTP_201_CREATED)
async def create_entry(
    entry_create: TimeEntryCreate,
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """
    Create a time entry.

    - Employee must exist
    - Only one entry per employee per day
    - Status is derived from the clock times
    """
    try:
        return await service.create_entry(entry_create)
    except DomainError as e:
        raise to_http_exception(e)


@router.get("/stats/overview", response_model=TimeEntryStatistics)
async def get_statistics(
    service: TimeEntryQueryService = Depends(get_query_service),
):
    """Get the total number of time entries and the count per status."""
    return await service.statistics()


@router.get("/export/template")
async def download_template(
    parser: SpreadsheetParser = Depends(get_spreadsheet_parser),
):
    """
    Download the spreadsheet template.

    HR fills it in (or exports it from the punch clock) and uploads it back
    to the import endpoint.
    """
    content = parser.generate_template()
    filename = f"time-entries-template-{datetime.utcnow().strftime('%Y-%m-%d')}.xlsx"

    return Response(
        content=content,
        media_type=XLSX_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/date-range", response_model=Page[TimeEntry])
async def list_by_date_range(
    start_date: str = Query(..., description="Start date (YYYY-MM-DD)"),
    end_date: str = Query(..., description="End date (YYYY-MM-DD)"),
    query: PageQuery = Depends(get_page_query),
    service: TimeEntryQueryService = Depends(get_query_service),
):
    """List time entries between two dates (inclusive)."""
    try:
        return await service.list_by_date_range(start_date, end_date, query)
    except DomainError as e:
        raise to_http_exception(e)


@router.get("/employee/{employee_id}", response_model=Page[TimeEntry])
async def list_by_employee(
    employee_id: int = Path(..., gt=0, le=MAX_EMPLOYEE_ID),
    query: PageQuery = Depends(get_employee_page_query),
    service: TimeEntryQueryService = Depends(get_query_service),
):
    """List the time entries of one employee."""
    try:
        return await service.list_by_employee(employee_id, query)
    except DomainError as e:
        raise to_http_exception(e)


@router.post(
    "/import/excel",
    response_model=BulkImportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def import_from_excel(
    file: UploadFile = File(..., description="Punch-clock export (.xlsx, max 10 MiB)"),
    parser: SpreadsheetParser = Depends(get_spreadsheet_parser),
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """
    Import time entries from a spreadsheet.

    - The whole file is rejected if any row is malformed
    - Rows for unknown employees or already recorded days are reported
      and skipped
    - Accepted rows are committed in a single transaction

    Only .xlsx workbooks are read. application/vnd.ms-excel is accepted
    because some browsers send it for .xlsx files; a legacy .xls workbook
    is rejected as unparseable.
    """
    try:
        if file.content_type not in ALLOWED_UPLOAD_TYPES:
            raise ValidationError(f"Unsupported file type: {file.content_type}")

        data = await file.read(settings.max_upload_bytes + 1)
        if len(data) > settings.max_upload_bytes:
            raise ValidationError(
                f"File exceeds the maximum size of {settings.max_upload_bytes} bytes"
            )

        candidates = await run_in_threadpool(parser.parse, data)
        result = await service.bulk_import(candidates)
    except DomainError as e:
        raise to_http_exception(e)

    return BulkImportResponse(
        message=f"Import completed: {result.imported} succeeded, {result.failed} failed",
        **result.model_dump(),
    )


@router.get("", response_model=Page[TimeEntry])
async def list_entries(
    query: PageQuery = Depends(get_page_query),
    service: TimeEntryQueryService = Depends(get_query_service),
):
    """
    List time entries.

    - Filters: employee_id, status, date, date_from, date_to
    - Sortable by id, employee_id, date, clock_in, clock_out, created_at
    - Sorted by date descending by default
    """
    try:
        return await service.list_entries(query)
    except DomainError as e:
        raise to_http_exception(e)


@router.delete("/bulk", response_model=BulkDeleteResult)
async def bulk_delete(
    request: BulkDeleteRequest,
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """
    Delete several time entries by ID.

    Each ID is deleted independently; missing IDs are reported.
    """
    try:
        return await service.bulk_delete(request.ids)
    except DomainError as e:
        raise to_http_exception(e)


@router.get("/{entry_id}", response_model=TimeEntry)
async def get_entry(
    entry_id: str,
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """Get a specific time entry by ID."""
    try:
        return await service.get_entry(entry_id)
    except DomainError as e:
        raise to_http_exception(e)


@router.patch("/{entry_id}", response_model=TimeEntry)
async def update_entry(
    entry_id: str,
    entry_update: TimeEntryUpdate,
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """
    Update a time entry.

    - Status is re-derived from the clock times
    - Changing employee or date re-checks the one-entry-per-day rule
    """
    try:
        return await service.update_entry(entry_id, entry_update)
    except DomainError as e:
        raise to_http_exception(e)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: str,
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """
    Delete a time entry.

    - Hard delete (permanent)
    """
    try:
        await service.delete_entry(entry_id)
    except DomainError as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
