import argparse
import asyncio
import sys
from typing import Dict, List, Optional

# --- Settings/Logging ---
from team_resolver.logging.setup import setup_logging
from team_resolver.config.settings import settings

setup_logging()

from loguru import logger

from team_resolver.clients.base_client import AuthenticationError
from team_resolver.clients.grid_client import GridClient
from team_resolver.models.resolution import ResolvedTeam
from team_resolver.resolution.resolver import build_team_resolver
from team_resolver.storage.supabase_client import initialize_supabase
from team_resolver.storage.team_store import StoreError, TeamStore
from team_resolver.sync.team_sync import get_registry_status, sync_team_registry

from rich import print
from rich.panel import Panel
from rich.table import Table


def _render_results(results: Dict[str, Optional[ResolvedTeam]], game: str) -> Table:
    table = Table(title=f"Team resolution ({game})")
    table.add_column("Query")
    table.add_column("Canonical name")
    table.add_column("GRID id")
    table.add_column("Confidence")
    table.add_column("Source")

    for query, team in results.items():
        if team is None:
            table.add_row(query, "[red]not found[/red]", "", "", "")
            continue
        table.add_row(
            query,
            team.canonical_name,
            team.canonical_id or "[yellow]unknown[/yellow]",
            team.confidence.value,
            team.source.value,
        )
    return table


async def run_resolve(names: List[str], game: str, use_live: bool) -> int:
    resolver = await build_team_resolver(game=game, use_live=use_live)
    try:
        results = await resolver.resolve_many(names, game)
    finally:
        if resolver.live_client:
            await resolver.live_client.close()

    print(_render_results(results, game))
    stats = resolver.get_resolution_stats(game)
    print(
        Panel(
            f"hits: {stats.hits_by_source}  misses: {stats.misses}  "
            f"index: {stats.index_size} teams  aliases: {stats.alias_count} teams",
            title="Stats",
        )
    )
    return 0 if all(results.values()) else 1


async def run_sync(force: bool, status_only: bool) -> int:
    supabase_client = await initialize_supabase()
    if not supabase_client:
        logger.critical("Failed to initialize Supabase client. Exiting.")
        return 1
    store = TeamStore(supabase_client)

    if status_only:
        status = await get_registry_status(store)
        age = f"{status.age_hours:.1f}h ago" if status.age_hours is not None else "never"
        print(
            Panel(
                f"teams: {status.record_count}\nlast sync: {age}\n"
                f"stale: {status.is_stale}",
                title=f"Registry {settings.grid_teams_table}",
            )
        )
        return 0

    if not settings.grid_api_key:
        logger.critical("GRID_API_KEY is not set; cannot sync the team registry.")
        return 1

    grid_client = GridClient()
    try:
        report = await sync_team_registry(grid_client, store, force=force)
    except AuthenticationError as e:
        logger.critical(f"GRID Authentication Error: {e} - Check GRID_API_KEY!")
        return 1
    finally:
        await grid_client.close()

    if report.skipped_reason:
        print(Panel(f"Skipped: {report.skipped_reason}", title="Sync"))
    else:
        print(
            Panel(
                f"{report.teams_fetched} teams over {report.pages} pages\n"
                f"{report.inserted} inserted, {report.updated} updated "
                f"in {report.duration_seconds}s",
                title="Sync",
            )
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve esports market team names to canonical GRID teams."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve one or more names")
    resolve_parser.add_argument("names", nargs="+")
    resolve_parser.add_argument("--game", default=settings.default_game)
    resolve_parser.add_argument(
        "--no-live", action="store_true", help="Skip the live GRID tier"
    )

    sync_parser = subparsers.add_parser("sync", help="Sync the GRID team registry")
    sync_parser.add_argument(
        "--force", action="store_true", help="Ignore the sync cooldown"
    )
    sync_parser.add_argument(
        "--status", action="store_true", help="Only show registry status"
    )
    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)
    try:
        if args.command == "resolve":
            return await run_resolve(args.names, args.game, not args.no_live)
        return await run_sync(args.force, args.status)
    except StoreError as e:
        logger.error(f"Team registry error: {e}")
        return 1


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
