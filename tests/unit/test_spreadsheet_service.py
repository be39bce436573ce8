"""Tests for SpreadsheetParser."""
import pytest
from datetime import date, time
from io import BytesIO

from openpyxl import Workbook, load_workbook

from app.exceptions import EmptyInputError, ValidationError
from app.models.time_entry import TimeEntryCreate, TimeEntryStatus
from app.services.spreadsheet_service import SpreadsheetParser
from app.utils.status import classify_status


def build_workbook(*rows) -> bytes:
    """Build xlsx bytes with the given rows on the first sheet."""
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(list(row))
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


HEADER = ("Employee ID", "Date", "Clock In", "Clock Out")


class TestParse:
    """Tests for parsing uploaded workbooks."""

    def test_parse_valid_rows(self):
        """Test rows are normalized into candidate records."""
        data = build_workbook(
            HEADER,
            (1, "2025-10-22", "08:30:00", "17:30:00"),
            ("2", "23/10/2025", "8:30", None),
            (3, date(2025, 10, 24), time(9, 0), time(18, 15)),
        )

        entries = SpreadsheetParser().parse(data)

        assert entries == [
            TimeEntryCreate(employee_id=1, date="2025-10-22", clock_in="08:30:00", clock_out="17:30:00"),
            TimeEntryCreate(employee_id=2, date="2025-10-23", clock_in="08:30:00", clock_out=None),
            TimeEntryCreate(employee_id=3, date="2025-10-24", clock_in="09:00:00", clock_out="18:15:00"),
        ]

    def test_parse_header_aliases(self):
        """Test alternative header names are recognised."""
        data = build_workbook(
            ("employee_id", "DATE", "Check In", "Check Out"),
            (4, "2025-10-22", "07:00", "15:00"),
        )

        entries = SpreadsheetParser().parse(data)

        assert entries[0].employee_id == 4
        assert entries[0].clock_in == "07:00:00"
        assert entries[0].clock_out == "15:00:00"

    def test_parse_skips_blank_rows(self):
        """Test fully blank rows are ignored."""
        data = build_workbook(
            HEADER,
            (1, "2025-10-22", "08:30", "17:30"),
            (None, None, None, None),
            (2, "2025-10-22", "08:30", "17:30"),
        )

        assert len(SpreadsheetParser().parse(data)) == 2

    def test_parse_rejects_inverted_times(self):
        """Test clock out not after clock in fails the whole file."""
        data = build_workbook(
            HEADER,
            (1, "2025-10-22", "08:00", "17:00"),
            (2, "2025-10-22", "17:00", "09:00"),
            (3, "2025-10-22", "09:00", "9:00"),
        )

        with pytest.raises(ValidationError) as exc_info:
            SpreadsheetParser().parse(data)

        assert exc_info.value.errors == [
            "Row 3: Clock Out time (09:00:00) must be after Clock In time (17:00:00)",
            "Row 4: Clock Out time (09:00:00) must be after Clock In time (09:00:00)",
        ]

    def test_parse_allows_missing_clock_out(self):
        """Test a row without clock out is not checked for order."""
        data = build_workbook(HEADER, (1, "2025-10-22", "17:00", None))

        entry = SpreadsheetParser().parse(data)[0]

        assert classify_status(entry.clock_in, entry.clock_out) == TimeEntryStatus.INCOMPLETE

    def test_parse_collects_all_row_errors(self):
        """Test every bad row is reported and nothing is returned."""
        data = build_workbook(
            HEADER,
            (1, "2025-10-22", "08:30", "17:30"),
            (None, "2025-10-22", "08:30", "17:30"),
            (2, "not a date", "08:30", "17:30"),
            (3, "2025-10-22", "25:00", "17:30"),
            (4, "2025-10-22", None, "17:30"),
        )

        with pytest.raises(ValidationError) as exc_info:
            SpreadsheetParser().parse(data)

        errors = exc_info.value.errors
        assert len(errors) == 4
        assert errors[0] == "Row 3: Employee ID is required"
        assert errors[1].startswith("Row 4: Invalid Date format: not a date")
        assert errors[2] == "Row 5: Invalid Clock In value: 25:00"
        assert errors[3] == "Row 6: Clock In time is required"

    def test_parse_invalid_employee_id(self):
        """Test a non-positive employee id is a row error."""
        data = build_workbook(HEADER, (0, "2025-10-22", "08:30", "17:30"))

        with pytest.raises(ValidationError) as exc_info:
            SpreadsheetParser().parse(data)

        assert exc_info.value.errors == ["Row 2: Invalid Employee ID: 0"]

    @pytest.mark.parametrize("employee_id", ["\u00b2", "99999999999999999999"])
    def test_parse_unusable_employee_id_is_a_row_error(self, employee_id):
        """Test ids that cannot be stored are reported per row."""
        data = build_workbook(
            HEADER,
            (1, "2025-10-22", "08:30", "17:30"),
            (employee_id, "2025-10-22", "08:30", "17:30"),
        )

        with pytest.raises(ValidationError) as exc_info:
            SpreadsheetParser().parse(data)

        assert exc_info.value.errors == [f"Row 3: Invalid Employee ID: {employee_id}"]

    def test_parse_header_only_is_empty(self):
        """Test a sheet with no data rows raises EmptyInputError."""
        with pytest.raises(EmptyInputError, match="no data rows"):
            SpreadsheetParser().parse(build_workbook(HEADER))

    def test_parse_blank_sheet_is_empty(self):
        """Test a sheet without any rows raises EmptyInputError."""
        with pytest.raises(EmptyInputError):
            SpreadsheetParser().parse(build_workbook())

    def test_parse_empty_bytes(self):
        """Test an empty upload raises EmptyInputError."""
        with pytest.raises(EmptyInputError):
            SpreadsheetParser().parse(b"")

    def test_parse_not_a_workbook(self):
        """Test arbitrary bytes raise ValidationError."""
        with pytest.raises(ValidationError, match="Failed to parse spreadsheet"):
            SpreadsheetParser().parse(b"employee,date\n1,2025-10-22\n")


class TestGenerateTemplate:
    """Tests for the downloadable template."""

    def test_template_layout(self):
        """Test sheet title, headers, example row and column widths."""
        content = SpreadsheetParser().generate_template()

        sheet = load_workbook(BytesIO(content)).active
        assert sheet.title == "Attendance"
        assert [cell.value for cell in sheet[1]] == ["Employee ID", "Date", "Clock In", "Clock Out"]
        assert [cell.value for cell in sheet[2]] == [1, "2025-11-06", "09:00:00", "17:30:00"]
        assert sheet.max_row == 2

        # Adjacent columns of equal width may be stored as one range
        widths = {}
        for dimension in sheet.column_dimensions.values():
            for index in range(dimension.min, dimension.max + 1):
                widths[index] = dimension.width
        assert [widths[index] for index in range(1, 5)] == [12, 12, 10, 10]

    def test_template_round_trip(self):
        """Test the template parses back into its example record."""
        parser = SpreadsheetParser()

        entries = parser.parse(parser.generate_template())

        assert entries == [
            TimeEntryCreate(employee_id=1, date="2025-11-06", clock_in="09:00:00", clock_out="17:30:00")
        ]
        assert classify_status(entries[0].clock_in, entries[0].clock_out) == TimeEntryStatus.COMPLETE
