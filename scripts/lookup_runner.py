#!/usr/bin/env python3
"""CLI script for looking up a runner's marathon result.

Usage:
    # One runner
    python scripts/lookup_runner.py \
        --race "Austin Marathon" --year 2026 --runner "Jennifer Samp"

    # Race-level info only (date, location, results page)
    python scripts/lookup_runner.py --race "CIM" --year 2025 --race-info

    # Many runners from a JSON file: [{"runner": ..., "race": ..., "year": ...}, ...]
    python scripts/lookup_runner.py --batch orders.json

    # Supported races
    python scripts/lookup_runner.py --list-races
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from finishline.config import settings
from finishline.features.races import (
    DispatchResult,
    RaceResearchService,
    RunnerQuery,
    get_registry,
)
from finishline.shared import format_duration


def print_result(query: RunnerQuery, result: DispatchResult) -> None:
    race = result.race.name if result.race else query.race_name
    print(f"\n=== {query.runner_name} @ {race} {query.year}: {result.status.value} ===")
    if result.reason:
        print(f"  {result.reason}")

    for m in result.matches:
        place = f"#{m.place}" if m.place else "#?"
        time = format_duration(m.finish_time) or m.raw_time or "no time"
        pace = f"  {m.pace}/mi" if m.pace else ""
        bib = f"  bib {m.bib}" if m.bib else ""
        print(
            f"  [{m.event_label or '-'}] {place}  {m.name}  {time}{pace}{bib}  "
            f"({m.match_quality.value})"
        )
        if m.source_url:
            print(f"      {m.source_url}")


def print_race_info(service: RaceResearchService, race_name: str, year: int) -> None:
    info = service.race_info(race_name, year)
    if info is None:
        print(f'No race configured for "{race_name}"')
        sys.exit(1)

    print(f"\n=== {info.race_name} {info.year} ===")
    print(f"Date:      {info.race_date.isoformat()}")
    print(f"Location:  {info.location or '-'}")
    print(f"Events:    {', '.join(info.event_types)}")
    print(f"Platform:  {info.platform}")
    print(f"Results:   {info.results_url or '-'}")


def load_batch(path: Path) -> list[RunnerQuery]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    return [
        RunnerQuery(
            runner_name=item.get("runner"),
            year=int(item["year"]),
            race_name=item.get("race"),
            tag=item.get("tag"),
            known_id=item.get("known_id"),
        )
        for item in raw
    ]


def main() -> None:
    parser = argparse.ArgumentParser(description="Look up marathon results by runner name")
    parser.add_argument("--race", help="Race name as written by the customer")
    parser.add_argument("--tag", help="Race tag (exact), e.g. 'CIM'")
    parser.add_argument("--year", type=int, help="Race year")
    parser.add_argument("--runner", help="Runner name")
    parser.add_argument("--known-id", help="Bib or platform id from an earlier lookup")
    parser.add_argument("--batch", help="JSON file with a list of lookups")
    parser.add_argument("--concurrency", type=int, help="Parallel lookups for --batch")
    parser.add_argument("--race-info", action="store_true", help="Show race info only")
    parser.add_argument("--list-races", action="store_true", help="List supported races")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if args.list_races:
        for config in get_registry().configs:
            print(f"  {config.tag:<14s} {config.name}  ({config.platform})")
        return

    service = RaceResearchService()

    if args.batch:
        path = Path(args.batch)
        if not path.exists():
            print(f"File not found: {path}")
            sys.exit(1)
        queries = load_batch(path)
        results = asyncio.run(service.research_batch(queries, args.concurrency))
        for query, result in zip(queries, results):
            print_result(query, result)
        return

    if not (args.race or args.tag) or not args.year:
        parser.error("--race (or --tag) and --year are required")

    if args.race_info:
        print_race_info(service, args.race or args.tag, args.year)
        return

    if not args.runner:
        parser.error("--runner is required")

    query = RunnerQuery(
        runner_name=args.runner,
        year=args.year,
        race_name=args.race,
        tag=args.tag,
        known_id=args.known_id,
    )
    result = asyncio.run(service.research(query))
    print_result(query, result)


if __name__ == "__main__":
    main()
