"""Command line driver for a single character lookup."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from models.app import LookupPhase, LookupState
from services.character_lookup_service import CharacterLookupService
from utils.di_container import ServiceKeys, configure_container, reset_container
from utils.exceptions import ConfigurationError
from utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tibia-lookup", description="Look up a Tibia character on TibiaData."
    )
    parser.add_argument("name", help="Character name")
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Revalidate over the network even when cached",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override the configured log level",
    )
    parser.add_argument(
        "--no-log-file", action="store_true", help="Only log to the console"
    )
    return parser


def format_state(state: LookupState) -> str:
    """Render a published state as plain text."""
    if state.phase is LookupPhase.FAILURE:
        return f"Error: {state.error_message}"
    if state.character is None:
        return "No character loaded"

    char = state.character
    lines = [
        f"{char.name} ({'online' if state.is_online else 'offline'})",
        f"  Level {char.level} {char.vocation}, {char.world}",
        f"  Residence: {char.residence}",
        f"  Achievement points: {char.achievement_points}",
    ]
    if char.guild:
        lines.append(f"  Guild: {char.guild.rank} of {char.guild.name}")
    if state.account_info and state.account_info.loyalty_title:
        lines.append(f"  Loyalty title: {state.account_info.loyalty_title}")
    for death in state.deaths[:5]:
        lines.append(f"  Died at level {death.level}: {death.reason}")
    if state.other_characters:
        others = ", ".join(f"{c.name} ({c.world})" for c in state.other_characters)
        lines.append(f"  Other characters: {others}")
    if state.recent_searches:
        lines.append(
            "Recent searches: " + ", ".join(e.name for e in state.recent_searches)
        )
    return "\n".join(lines)


async def _run(name: str, refresh: bool) -> int:
    container = configure_container()
    service: CharacterLookupService = container.resolve(
        ServiceKeys.CHARACTER_LOOKUP_SERVICE
    )
    config = container.resolve(ServiceKeys.CONFIG)
    try:
        await service.start(config.tibiadata.connectivity_poll_interval)
        state = await service.fetch_character(name, refresh=refresh)
    finally:
        await service.close()
        reset_container()

    if state is None:
        return 1
    print(format_state(state))
    return 0 if state.phase is LookupPhase.SUCCESS else 1


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        setup_logging(log_level=args.log_level, save_to_file=not args.no_log_file)
        return asyncio.run(_run(args.name, args.refresh))
    except ConfigurationError as e:
        print(e, file=sys.stderr)
        return 2
