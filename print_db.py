"""Print the most recent analysis records stored in the SQLite database.

Reuses the application's `DATABASE_DIR` behaviour via
`utils.database_init.AsyncDatabaseInitializer`.

Run: set `DATABASE_DIR` and run `python print_db.py [--limit N] [--id ID]`.
"""
import argparse
import asyncio
import json
from datetime import datetime, timezone
from typing import List, Optional

from dotenv import load_dotenv

from dal.analysis_dal import AnalysisDAL
from models.analysis_record import AnalysisRecord
from utils.database_init import AsyncDatabaseInitializer


def _format_record(record: AnalysisRecord) -> str:
    """Render one record as a header line plus indented JSON."""
    created = datetime.fromtimestamp(record.created_at or 0, tz=timezone.utc).isoformat()
    header = f"#{record.id} {created} model={record.model_used} url={record.image_url}"
    body = json.dumps(record.analysis_data, indent=2, sort_keys=True)
    return header + "\n  " + body.replace("\n", "\n  ")


async def main(argv: Optional[List[str]] = None) -> None:
    """Print one record by id, or the newest `--limit` records."""
    parser = argparse.ArgumentParser(description="Inspect stored analysis records.")
    parser.add_argument("--limit", type=int, default=20)
    parser.add_argument("--id", type=int, default=None, dest="record_id")
    args = parser.parse_args(argv)

    dal = AnalysisDAL(AsyncDatabaseInitializer())
    if args.record_id is not None:
        record = await dal.get_record_by_id(args.record_id)
        print(_format_record(record) if record else f"No record with id {args.record_id}")
        return

    for record in await dal.list_records(limit=args.limit):
        print(_format_record(record))
        print()


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(main())
