#!/usr/bin/env python3
"""
CLI script to seed the emission_factors table.

Usage:
    # Seed the built-in default factor table
    python scripts/seed_database.py

    # Clear existing factors before seeding
    python scripts/seed_database.py --clear

    # Also load institution or regional factors from a CSV file
    python scripts/seed_database.py --csv path/to/factors.csv

    # Seed another environment's database
    python scripts/seed_database.py --env production
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path so we can import carbonnet modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from carbonnet.core.config import get_config
from carbonnet.database.base import get_db_url, get_engine_kw
from carbonnet.database.session_manager.db_session import Database
from carbonnet.services.seed_database import DEFAULT_VALID_FROM, FactorSeeder
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

console = Console()


def print_header(text: str, style: str = "bold cyan"):
    """Print a formatted header using Rich Panel."""
    console.print(
        Panel(
            Text(text, justify="center", style=style),
            border_style="cyan",
            padding=(1, 2),
        )
    )


def print_config(args):
    config_table = Table(show_header=False, box=None, padding=(0, 2))
    config_table.add_column("Setting", style="bold yellow")
    config_table.add_column("Value", style="green")

    config_table.add_row("Environment", args.env)
    config_table.add_row("Clear Existing", "Yes" if args.clear else "No")
    config_table.add_row("CSV File", args.csv or "-")
    config_table.add_row("Valid From", args.valid_from.isoformat())

    console.print(config_table)
    console.print()


def print_stats(stats: dict):
    """Print seeding statistics using Rich Table."""
    print_header("SEEDING STATISTICS", "bold green")

    stats_table = Table(show_header=True, box=None, padding=(0, 2))
    stats_table.add_column("Source", style="bold cyan", width=30)
    stats_table.add_column("Count", justify="right", style="bold green")

    stats_table.add_row("Default Factors", str(stats["default_factors"]))
    stats_table.add_row("CSV Factors", str(stats["csv_factors"]))
    stats_table.add_row("Already Present", str(stats["skipped"]))

    console.print(stats_table)
    console.print()

    if stats.get("errors"):
        console.print(
            Panel(
                f"[yellow]{len(stats['errors'])} rows could not be loaded[/yellow]",
                border_style="yellow",
            )
        )
        for i, error in enumerate(stats["errors"][:5], 1):
            console.print(f"  {i}. [dim]{error}[/dim]")
        if len(stats["errors"]) > 5:
            console.print(f"  [dim]... and {len(stats['errors']) - 5} more[/dim]")
        console.print()


async def main():
    """Main entry point for the seeding script."""
    parser = argparse.ArgumentParser(description="Seed emission factors")
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete existing emission factors before seeding",
    )
    parser.add_argument(
        "--csv",
        type=str,
        default=None,
        help="CSV file with additional factors",
    )
    parser.add_argument(
        "--env",
        type=str,
        default="development",
        choices=["development", "production", "test"],
        help="Config environment (default: development)",
    )
    parser.add_argument(
        "--valid-from",
        type=date.fromisoformat,
        default=DEFAULT_VALID_FROM,
        help=f"Start date for default factors (default: {DEFAULT_VALID_FROM.isoformat()})",
    )

    args = parser.parse_args()

    print_header("EMISSION FACTOR SEEDING", "bold cyan")
    print_config(args)

    try:
        config = get_config(f"{args.env}.toml")
        async_db_url = get_db_url(config)
        Database.init(async_db_url, engine_kw=get_engine_kw(async_db_url))
        logger.info("Database initialized")

        with console.status("[bold cyan]Seeding emission factors...", spinner="dots"):
            async with FactorSeeder() as seeder:
                stats = await seeder.seed_all(
                    clear_existing=args.clear,
                    csv_file=args.csv,
                    valid_from=args.valid_from,
                )

        print_stats(stats)
        console.print(
            Panel(
                Text("SEEDING COMPLETED SUCCESSFULLY", justify="center"),
                border_style="bold green",
                style="bold green",
            )
        )

    except Exception as e:
        logger.error(f"Seeding failed: {e}", exc_info=True)
        console.print()
        console.print(
            Panel(
                f"[bold red]SEEDING FAILED[/bold red]\n\n[red]{e!s}[/red]",
                border_style="bold red",
            )
        )
        console.print()
        sys.exit(1)
    finally:
        await Database.dispose()


if __name__ == "__main__":
    asyncio.run(main())
