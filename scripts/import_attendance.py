"""Operator script: import a punch-clock spreadsheet or write the template.

Usage:
    python scripts/import_attendance.py import /path/to/export.xlsx \\
        --mongodb-url mongodb://localhost:27017/?replicaSet=rs0

    python scripts/import_attendance.py template /path/to/template.xlsx
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient
from app.config import settings
from app.exceptions import DomainError, ValidationError
from app.repositories.employees import MongoEmployeeDirectory
from app.repositories.time_entries import MongoTimeEntryRepository
from app.services.spreadsheet_service import SpreadsheetParser
from app.services.time_entry_service import TimeEntryService


async def import_file(path: Path, mongodb_url: str, db_name: str) -> int:
    """Parse and import one spreadsheet, printing the report."""
    parser = SpreadsheetParser()

    try:
        candidates = parser.parse(path.read_bytes())
    except DomainError as e:
        print(f"Error: {e.message}")
        if isinstance(e, ValidationError):
            for error in e.errors:
                print(f"  ✗ {error}")
        return 1

    client = AsyncIOMotorClient(mongodb_url)
    try:
        db = client[db_name]
        entries = MongoTimeEntryRepository(db)
        await entries.ensure_indexes()
        service = TimeEntryService(entries, MongoEmployeeDirectory(db))
        result = await service.bulk_import(candidates)
    finally:
        client.close()

    print("\n=== Import Summary ===")
    print(f"  Total: {result.total}")
    print(f"  Imported: {result.imported}")
    print(f"  Failed: {result.failed}")
    for error in result.errors:
        print(f"  ✗ employee {error.employee_id} on {error.date}: {error.error}")

    return 0


def write_template(path: Path) -> int:
    """Write the spreadsheet template to disk."""
    path.write_bytes(SpreadsheetParser().generate_template())
    print(f"Template written to {path}")
    return 0


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Attendance spreadsheet tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Import a spreadsheet")
    import_parser.add_argument("file", help="Path to the .xlsx export")
    import_parser.add_argument(
        "--mongodb-url",
        default=settings.mongodb_url,
        help="MongoDB connection URL",
    )
    import_parser.add_argument(
        "--db-name",
        default=settings.mongodb_db_name,
        help="MongoDB database name",
    )

    template_parser = subparsers.add_parser("template", help="Write the template")
    template_parser.add_argument("output", help="Where to write the .xlsx template")

    args = parser.parse_args()

    if args.command == "template":
        sys.exit(write_template(Path(args.output)))

    source_path = Path(args.file)
    if not source_path.exists():
        print(f"Error: File does not exist: {source_path}")
        sys.exit(1)

    sys.exit(await import_file(source_path, args.mongodb_url, args.db_name))


if __name__ == "__main__":
    asyncio.run(main())
