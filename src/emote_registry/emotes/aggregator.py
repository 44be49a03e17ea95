"""Channel emote aggregation across several providers."""

import asyncio
import logging
from collections.abc import Sequence

from ..core.models import RawEmoteRecord
from ..core.settings import DEFAULT_SOURCE_TIMEOUT
from .errors import AggregationError, StaleAggregationError
from .provider import EmoteSource
from .store import EmoteRegistry, EmoteSet

logger = logging.getLogger(__name__)


class EmoteAggregator:
    """Loads a channel's emotes from every source and installs them as one set.

    All sources are queried concurrently and joined; a failing or slow
    source contributes nothing instead of aborting the load. Results are
    merged in source order, so a later source wins when two records share
    an id. Only the most recently started aggregation may install.
    """

    def __init__(
        self,
        registry: EmoteRegistry,
        sources: Sequence[EmoteSource],
        source_timeout: float = DEFAULT_SOURCE_TIMEOUT,
    ):
        self.registry = registry
        self.sources = list(sources)
        self.source_timeout = source_timeout
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def supersede(self) -> None:
        """Invalidate any aggregation currently in flight."""
        self._generation += 1

    async def aggregate(self, channel_id: str) -> EmoteSet:
        """Fetch, merge and install the emotes for a channel.

        Raises:
            AggregationError: No source produced any emote. Nothing is
                installed and an existing set for the channel is kept.
            StaleAggregationError: A newer aggregation was started while
                this one was waiting on its sources.
        """
        self._generation += 1
        generation = self._generation

        results = await asyncio.gather(
            *(self._fetch_source(source, channel_id) for source in self.sources)
        )

        if generation != self._generation:
            logger.debug(f"Discarding superseded emote load for {channel_id}")
            raise StaleAggregationError(channel_id)

        records: list[RawEmoteRecord] = []
        for batch in results:
            records.extend(batch)

        if not records:
            raise AggregationError(
                channel_id, "Emotes failed to load (perhaps the services are down?)"
            )

        emote_set = self.registry.enable_set(channel_id, records)
        logger.info(
            f"Loaded {emote_set.size} emotes for {channel_id} "
            f"from {sum(1 for r in results if r)}/{len(self.sources)} sources"
        )
        return emote_set

    async def _fetch_source(self, source: EmoteSource, channel_id: str) -> list[RawEmoteRecord]:
        """Query one source, turning any failure into an empty result."""
        try:
            records = await asyncio.wait_for(source.fetch(channel_id), self.source_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Emote source {source.label} timed out after {self.source_timeout}s "
                f"for {channel_id}"
            )
            return []
        except Exception as e:
            logger.warning(f"Emote source {source.label} failed for {channel_id}: {e}")
            return []

        logger.debug(f"Fetched {len(records)} emotes from {source.label}")
        return list(records)
