"""Seed the test-results table from an export file or with synthetic records.

Usage:
    python scripts/seed_records.py path/to/export.jsonl
    python scripts/seed_records.py --mock 200
"""

import argparse
import asyncio

from testlab_insights.db.connection import async_session, engine
from testlab_insights.discovery.dedup import find_duplicates
from testlab_insights.ingestion.mock_generator import generate_mock_documents
from testlab_insights.ingestion.record_loader import load_documents, records_from_documents
from testlab_insights.ingestion.record_validator import validate_documents
from testlab_insights.memory import record_store


async def seed(path: str | None, mock_count: int, seed_value: int | None) -> None:
    if path:
        docs = load_documents(path)
    else:
        docs = generate_mock_documents(mock_count, seed=seed_value)

    result = validate_documents(docs)
    for rejected in result.rejected:
        print(f"[seed] Skipping document #{rejected['index']}: {', '.join(rejected['issues'])}")

    duplicates = find_duplicates(records_from_documents(result.clean))
    if duplicates:
        # stored as-is; dashboard hours count each session/duration once
        extra = sum(n - 1 for n in duplicates.values())
        print(f"[seed] {len(duplicates)} session/duration keys repeat ({extra} extra rows)")

    async with async_session() as session:
        written = await record_store.insert_documents(session, result.clean)
    print(f"[seed] Inserted {written} test results ({result.summary()})")
    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", nargs="?", help=".json, .jsonl or .csv export")
    parser.add_argument("--mock", type=int, default=100, help="synthetic record count when no path is given")
    parser.add_argument("--seed", type=int, default=None, help="random seed for synthetic records")
    args = parser.parse_args()
    asyncio.run(seed(args.path, args.mock, args.seed))


if __name__ == "__main__":
    main()
