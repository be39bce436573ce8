"""Spreadsheet service - parsing punch-clock exports and building templates."""
from io import BytesIO
from typing import Any
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from app.exceptions import EmptyInputError, ValidationError
from app.models.time_entry import TimeEntryCreate, TimeEntryStatus
from app.utils.logging import get_logger
from app.utils.normalize import (
    CLOCK_IN_ALIASES,
    CLOCK_OUT_ALIASES,
    DATE_ALIASES,
    EMPLOYEE_ID_ALIASES,
    is_blank,
    normalize_date,
    normalize_employee_id,
    normalize_time,
    resolve_field,
)
from app.utils.status import classify_status

logger = get_logger(__name__)

TEMPLATE_SHEET_TITLE = "Attendance"
TEMPLATE_HEADERS = ("Employee ID", "Date", "Clock In", "Clock Out")
TEMPLATE_COLUMN_WIDTHS = (12, 12, 10, 10)
TEMPLATE_EXAMPLE_ROW = (1, "2025-11-06", "09:00:00", "17:30:00")


class SpreadsheetParser:
    """Service for reading and writing attendance workbooks.

    Expected layout (first sheet, header in row 1):

        | Employee ID | Date       | Clock In | Clock Out |
        | 1           | 2025-10-22 | 08:30:00 | 17:30:00  |
    """

    def parse(self, data: bytes) -> list[TimeEntryCreate]:
        """
        Parse an uploaded workbook into candidate time entries.

        Every row is parsed even when earlier rows fail, so the caller gets
        the full list of problems at once. Nothing is returned unless all
        rows are valid.

        Args:
            data: Raw workbook bytes

        Returns:
            Normalized candidate records, in sheet order

        Raises:
            EmptyInputError: If the workbook has no sheet or no data rows
            ValidationError: If the file is unreadable or any row is invalid
        """
        if not data:
            raise EmptyInputError("Spreadsheet file is empty or has no sheets")

        try:
            workbook = load_workbook(BytesIO(data), read_only=True, data_only=True)
        except (BadZipFile, InvalidFileException, KeyError, OSError, ValueError) as e:
            raise ValidationError(f"Failed to parse spreadsheet: {e}") from e

        try:
            if not workbook.worksheets:
                raise EmptyInputError("Spreadsheet file is empty or has no sheets")

            rows = workbook.worksheets[0].iter_rows(values_only=True)
            headers = next(rows, None) or ()

            entries: list[TimeEntryCreate] = []
            errors: list[str] = []
            data_rows = 0

            # Row 1 is the header, so data starts on sheet row 2
            for row_number, values in enumerate(rows, start=2):
                if all(is_blank(value) for value in values):
                    continue
                data_rows += 1

                record = dict(zip(headers, values))
                try:
                    entries.append(self.parse_row(record))
                except ValidationError as e:
                    errors.append(f"Row {row_number}: {e.message}")
        finally:
            workbook.close()

        if data_rows == 0:
            raise EmptyInputError("Spreadsheet contains no data rows")

        if errors:
            logger.info("spreadsheet_rejected", rows=data_rows, invalid_rows=len(errors))
            raise ValidationError("Spreadsheet contains invalid data", errors=errors)

        logger.info("spreadsheet_parsed", rows=data_rows)
        return entries

    def parse_row(self, record: dict[Any, Any]) -> TimeEntryCreate:
        """
        Parse a single row keyed by header name.

        Raises:
            ValidationError: If a required field is missing or malformed,
                or clock out is not after clock in
        """
        employee_id = resolve_field(record, EMPLOYEE_ID_ALIASES)
        work_date = resolve_field(record, DATE_ALIASES)
        clock_in = resolve_field(record, CLOCK_IN_ALIASES)
        clock_out = resolve_field(record, CLOCK_OUT_ALIASES)

        if employee_id is None:
            raise ValidationError("Employee ID is required")
        if work_date is None:
            raise ValidationError("Date is required")
        if clock_in is None:
            raise ValidationError("Clock In time is required")

        entry = TimeEntryCreate(
            employee_id=normalize_employee_id(employee_id),
            date=normalize_date(work_date, "Date"),
            clock_in=normalize_time(clock_in, "Clock In"),
            clock_out=normalize_time(clock_out, "Clock Out") if clock_out is not None else None,
        )

        if classify_status(entry.clock_in, entry.clock_out) == TimeEntryStatus.INVALID:
            raise ValidationError(
                f"Clock Out time ({entry.clock_out}) must be after "
                f"Clock In time ({entry.clock_in})"
            )

        return entry

    def generate_template(self) -> bytes:
        """
        Build a workbook HR can fill in and upload back.

        Returns:
            xlsx bytes with the header row and one example row
        """
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = TEMPLATE_SHEET_TITLE
        sheet.append(TEMPLATE_HEADERS)
        sheet.append(TEMPLATE_EXAMPLE_ROW)

        for index, width in enumerate(TEMPLATE_COLUMN_WIDTHS, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = width

        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()
