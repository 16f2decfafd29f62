#!/usr/bin/env python3
"""Generate a sample request workbook for trying the synchronizer.

Layout matches config/sync.example.yml:
- Row 1: Title row (ignored)
- Row 2: Header row
- Row 3+: Request rows
"""
from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pandas as pd

HEADERS = ["Timestamp", "Title", "Description", "Labels", "Priority", "Due Date", "Email Address", "Team"]
TEAMS = ["Platform", "Data", "Web", "Mobile"]
PRIORITIES = ["Major", "Minor", "Critical", ""]


def generate_rows(count: int) -> list[list[object]]:
    start = datetime(2024, 1, 1, 9, 0, 0)
    rows: list[list[object]] = []
    for i in range(count):
        ts = start + timedelta(hours=i * 7)
        rows.append([
            ts,
            f"Request #{i + 1}",
            f"Details for request {i + 1}",
            "intake, sample" if i % 2 == 0 else "",
            PRIORITIES[i % len(PRIORITIES)],
            (ts + timedelta(days=14)).strftime("%Y-%m-%d") if i % 3 else "someday",
            f"user{i + 1}@example.com",
            TEAMS[i % len(TEAMS)],
        ])
    return rows


def write_workbook(path: Path, sheet: str, count: int) -> None:
    df = pd.DataFrame([["Request intake form", *[""] * (len(HEADERS) - 1)], HEADERS, *generate_rows(count)])
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet, header=False, index=False)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description=__doc__)
    p.add_argument("--rows", type=int, default=10, help="Number of request rows")
    p.add_argument("--sheet", default="Form Responses")
    p.add_argument("--output", type=Path, default=Path("data/requests.xlsx"))
    args = p.parse_args(argv)
    if args.rows < 0:
        print("--rows must be >= 0", file=sys.stderr)
        return 1
    write_workbook(args.output, args.sheet, args.rows)
    print(f"wrote {args.rows} rows to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
