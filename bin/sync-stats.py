"""Backfill Sleeper players and weekly stats into the draft database.

Usage:
    uv run python bin/sync-stats.py players
    uv run python bin/sync-stats.py week 2024 7
    uv run python bin/sync-stats.py weeks 2024 1 18

Reads DRAFT_DATABASE_PATH and the other DRAFT_ settings from the environment.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from draft.server.settings import DraftServerSettings
from draft.stats.sleeper import SleeperAPIError, SleeperClient
from draft.stats.sync import StatSyncService
from shared.db import Database, SqlitePlayerRepository, SqliteStatRepository
from shared.logging import setup_logging


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("players", help="sync every NFL player")

    week = commands.add_parser("week", help="sync one week of stats")
    week.add_argument("season", type=int)
    week.add_argument("week", type=int)

    weeks = commands.add_parser("weeks", help="sync a range of weeks, pausing between requests")
    weeks.add_argument("season", type=int)
    weeks.add_argument("start_week", type=int)
    weeks.add_argument("end_week", type=int)
    return parser.parse_args()


async def main() -> None:
    args = _parse_args()
    settings = DraftServerSettings(scheduler_enabled=False)
    setup_logging()

    db = Database(settings.database_path)
    db.connect()
    try:
        sync_service = StatSyncService(
            SleeperClient(settings.sleeper_base_url, timeout=settings.sleeper_timeout),
            SqlitePlayerRepository(db),
            SqliteStatRepository(db),
        )
        try:
            if args.command == "players":
                result = await sync_service.sync_players()
            elif args.command == "week":
                result = await sync_service.sync_weekly_stats(args.season, args.week)
            else:
                result = await sync_service.sync_multiple_weeks(args.season, args.start_week, args.end_week)
        except (SleeperAPIError, ValueError) as e:
            print(f"Error: {e}")
            sys.exit(1)

        print(f"Synced: {result.inserted} new, {result.updated} updated")
    finally:
        db.close()


if __name__ == "__main__":
    asyncio.run(main())
