"""
Reference data: countries, ratings and loan amortizations.
Each table is seeded only while it is empty, so running twice is harmless.
"""
from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncConnection

from database import connect
from db.builders import InsertBuilder, SelectBuilder

logger = structlog.get_logger()

COUNTRIES_DATA = [
    {"id": 1, "code": "CA", "name": "Canada"},
    {"id": 2, "code": "US", "name": "United States"},
    {"id": 3, "code": "GB", "name": "United Kingdom"},
]

RATINGS_DATA = [
    {"id": 1, "name": "A", "description": "Excellent credit, lowest risk"},
    {"id": 2, "name": "B", "description": "Good credit, low risk"},
    {"id": 3, "name": "C", "description": "Fair credit, moderate risk"},
    {"id": 4, "name": "D", "description": "Weak credit, elevated risk"},
    {"id": 5, "name": "E", "description": "Poor credit, highest risk"},
]

AMORTIZATIONS_DATA = [
    {"id": 1, "name": "6-Month", "months": 6},
    {"id": 2, "name": "1-Year", "months": 12},
    {"id": 3, "name": "3-Year", "months": 36},
    {"id": 4, "name": "5-Year", "months": 60},
]


async def _seed_table(conn: AsyncConnection, table: str, rows: list[dict[str, Any]]) -> int:
    result = await conn.execute(SelectBuilder(table).column("COUNT(*)").statement())
    if result.scalar_one() > 0:
        return 0
    for row in rows:
        insert = InsertBuilder(table)
        for column, value in row.items():
            insert = insert.set_string(column, value)
        await conn.execute(insert.statement())
    return len(rows)


async def seed_reference_data() -> dict[str, int]:
    """Insert the reference rows into empty tables. Returns rows added per table."""
    added = {}
    async with connect("Unable to seed the reference data with SQL") as conn:
        added["countries"] = await _seed_table(conn, "countries", COUNTRIES_DATA)
        added["ratings"] = await _seed_table(conn, "ratings", RATINGS_DATA)
        added["loan_amortizations"] = await _seed_table(conn, "loan_amortizations", AMORTIZATIONS_DATA)
    logger.info("reference_data_seeded", **added)
    return added
