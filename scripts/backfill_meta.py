#!/usr/bin/env python
"""
Backfill Meta ad insights into `meta_ad_daily` for an explicit date range.

Rows are upserted on (client_id, date, ad_id, platform, device), so re-running
a range never duplicates data. The range is fetched in chunks to keep each
Graph API call small.

Usage:
  python scripts/backfill_meta.py --start 2024-01-01 --end 2024-01-31
  python scripts/backfill_meta.py --start 2024-01-01 --end 2024-01-31 --client_id <uuid>
  python scripts/backfill_meta.py --start 2024-01-01 --end 2024-03-31 --chunk_days 7
"""

import argparse
import asyncio
import os
import sys
from datetime import date, timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.tasks.collect_tasks import collect_meta_all_async, collect_meta_client_async


def _chunks(start: date, end: date, chunk_days: int):
    cursor = start
    while cursor <= end:
        chunk_end = min(end, cursor + timedelta(days=chunk_days - 1))
        yield cursor, chunk_end
        cursor = chunk_end + timedelta(days=1)


async def run(args):
    start = date.fromisoformat(args.start)
    end = date.fromisoformat(args.end)
    if end < start:
        raise SystemExit("--end must not be before --start")

    for chunk_start, chunk_end in _chunks(start, end, args.chunk_days):
        print(f"[backfill] {chunk_start} ~ {chunk_end}")
        if args.client_id:
            written = await collect_meta_client_async(args.client_id, chunk_start, chunk_end)
            print(f"[backfill]   rows written: {written}")
        else:
            stats = await collect_meta_all_async(chunk_start, chunk_end)
            print(f"[backfill]   {stats}")


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--start", required=True, help="YYYY-MM-DD (inclusive)")
    ap.add_argument("--end", required=True, help="YYYY-MM-DD (inclusive)")
    ap.add_argument("--client_id", default=None, help="Only this client (default: all active clients)")
    ap.add_argument("--chunk_days", type=int, default=7)
    args = ap.parse_args()
    args.chunk_days = max(1, min(31, args.chunk_days))

    asyncio.run(run(args))


if __name__ == "__main__":
    main()
