# demo_query_records.py
# Version: v1

r"""
Demo: run a query through AthenaClient and map the rows onto a dataclass.

Usage (bash):

  # Canned data, no AWS account needed
  export ATHENA_MOCK_MODE=1
  python demo_query_records.py

  # Against a real workgroup
  export ATHENA_REGION=eu-west-1
  export ATHENA_DATABASE=inventory
  export AWS_ACCESS_KEY_ID=...
  export AWS_SECRET_ACCESS_KEY=...
  export ATHENA_TEST_SQL="SELECT * FROM computers LIMIT 10"
  python demo_query_records.py
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from athena_records import AthenaConfig, AthenaClient, column
from athena_records.mock import MockAthenaClient


SQL = os.environ.get("ATHENA_TEST_SQL", "SELECT * FROM computers")


@dataclass
class Computer:
    id: int = column("id")
    name: str = column("name")
    source_computers_count: int = column("source_computers_count")
    source_computer_ids: List[str] = column("source_computer_ids", default_factory=list)
    last_seen: Optional[datetime] = column("last_seen")
    first_seen: Optional[date] = column("first_seen")
    is_active: bool = column("is_active", default=False)


async def main() -> None:
    cfg = AthenaConfig.from_env()
    client = MockAthenaClient(config=cfg) if cfg.mock_mode else AthenaClient(config=cfg)

    print("Running query via AthenaClient.get_query_results()")
    print(f"Mock mode: {cfg.mock_mode}")
    print(f"Workgroup: {cfg.workgroup}")
    print(f"SQL:       {SQL}")

    records = await client.get_query_results(SQL, Computer)

    print("\nRecords returned:", len(records))
    for i, record in enumerate(records, start=1):
        print(f"  Record {i}:", record)


if __name__ == "__main__":
    asyncio.run(main())
