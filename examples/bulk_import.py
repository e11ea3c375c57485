#!/usr/bin/env python3
"""
Streaming bulk import example.

Reads leads from a CSV file and creates them in batches. Batches are
submitted when full, or when no new row arrives for two seconds.

Usage:
    export LEADSDB_API_KEY="your-api-key"
    python examples/bulk_import.py leads.csv
"""

import asyncio
import csv
import logging
import sys
from collections.abc import AsyncIterator

from leadsdb import BatchConfig, BulkRecordError, Lead, LeadsClient
from leadsdb.telemetry import LeadsDbLogger


async def read_leads(path: str) -> AsyncIterator[Lead]:
    """Yield one lead per CSV row."""
    with open(path, newline="") as f:
        for row in csv.DictReader(f):
            yield Lead(
                name=row["name"],
                source=row.get("source") or "csv",
                city=row.get("city") or None,
                email=row.get("email") or None,
            )
            await asyncio.sleep(0)


async def main(path: str) -> None:
    LeadsDbLogger.configure(logging.INFO)

    async with LeadsClient() as client:
        outlets = client.bulk_create_stream(
            read_leads(path),
            BatchConfig(max_batch_size=100, flush_timeout=2.0),
        )
        created, errors = await outlets.drain()

    print(f"Created {len(created)} leads")
    for error in errors:
        if isinstance(error, BulkRecordError):
            print(f"  row {error.index} of its batch rejected: {error.reason}")
        else:
            print(f"  batch failed: {error}")

    with open("export.csv", "wb") as out:
        async with LeadsClient() as client:
            out.write(await client.export_bytes())


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "leads.csv"))
