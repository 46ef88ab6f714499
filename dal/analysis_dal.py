"""Async Data Access Layer for the analysis_results table.

Provides AnalysisDAL with the insert and read operations the pipeline needs,
compatible with `utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import json
import time
from typing import List, Optional, Sequence

from models.analysis_record import AnalysisRecord
from utils.database_init import AsyncDatabaseInitializer


class AnalysisDAL:
    """Data access layer for analysis records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = (
        "id",
        "image_url",
        "analysis_data",
        "model_used",
        "created_at",
    )
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_record(self, record: AnalysisRecord) -> int:
        """Insert a new analysis row and return the new id.

        Args:
            record: AnalysisRecord with `id=None`. `created_at` is assigned
                here when missing.

        Returns:
            The integer primary key of the created row.
        """
        created_at = record.created_at or int(time.time())

        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO analysis_results ({self._INSERT_COLUMNS}) VALUES (?, ?, ?, ?)",
                (
                    record.image_url,
                    json.dumps(record.analysis_data),
                    record.model_used,
                    created_at,
                ),
            )
            await conn.commit()
            return cur.lastrowid

    async def get_record_by_id(self, record_id: int) -> Optional[AnalysisRecord]:
        """Return the AnalysisRecord for `record_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM analysis_results WHERE id = ?",
                (record_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_records(self, limit: int = 100, offset: int = 0) -> List[AnalysisRecord]:
        """List analysis rows, newest first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM analysis_results ORDER BY id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> AnalysisRecord:
        """Convert a DB row tuple into an AnalysisRecord."""
        raw_data = row[2]
        return AnalysisRecord(
            id=row[0],
            image_url=row[1],
            analysis_data=json.loads(raw_data) if raw_data else {},
            model_used=row[3],
            created_at=row[4],
        )
