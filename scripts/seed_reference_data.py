"""
Create tables and seed reference data (countries, ratings, loan amortizations).
Run: python -m scripts.seed_reference_data (from backend dir, with DB running).
"""
import asyncio
import os
import sys

# Add parent so we can import from backend
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import init_db
from db.seed import seed_reference_data


async def seed():
    await init_db()
    added = await seed_reference_data()
    for table, count in added.items():
        if count:
            print(f"Seeded {count} rows into {table}")
        else:
            print(f"{table} already populated, skipping")
    print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
