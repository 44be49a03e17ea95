#!/usr/bin/env python3
"""Command-line entry point: load a channel's emotes and print a summary."""

import asyncio
import logging
import sys
from collections import Counter

import typer

from .core.settings import Settings
from .emotes.aggregator import EmoteAggregator
from .emotes.provider import build_sources
from .emotes.store import EmoteRegistry
from .emotes.switcher import ScopeSwitcher

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def setup_logging(level: int = logging.INFO) -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Suppress noisy third-party loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


async def load_channel(channel_id: str, settings: Settings) -> EmoteRegistry | None:
    """Aggregate a channel's emotes into a fresh registry."""
    registry = EmoteRegistry()
    aggregator = EmoteAggregator(
        registry,
        build_sources(settings),
        source_timeout=settings.aggregation.source_timeout,
    )
    switcher = ScopeSwitcher(aggregator)
    switcher.scope_failed.connect(
        lambda scope, message: logging.error(f"Emotes disabled for {scope}: {message}")
    )
    if not await switcher.switch_channel(channel_id):
        return None
    return registry


@app.command()
def main(
    channel_id: str = typer.Argument(..., help="Twitch user ID of the channel."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Load a channel's emotes from every provider and print a summary."""
    setup_logging(logging.DEBUG if verbose else logging.INFO)

    registry = asyncio.run(load_channel(channel_id, Settings.load()))
    if registry is None:
        raise typer.Exit(code=1)

    emote_set = registry.get_set(channel_id)
    counts = Counter(emote.provider.value for emote in emote_set)
    typer.echo(f"{channel_id}: {emote_set.size} emotes")
    for provider, count in counts.most_common():
        typer.echo(f"  {provider:<7} {count}")


if __name__ == "__main__":
    app()
