"""Emote store, providers and the channel aggregation pipeline."""

from .aggregator import EmoteAggregator
from .errors import AggregationError, EmoteError, StaleAggregationError
from .image import EmoteImageRenderer, ImageSet, ImageSpec
from .matcher import find_emotes
from .provider import (
    BaseEmoteProvider,
    BTTVProvider,
    EmoteSource,
    FFZProvider,
    SevenTVProvider,
    SourceScope,
    TwitchProvider,
    build_sources,
)
from .store import Emote, EmoteRegistry, EmoteSet
from .switcher import ChannelEventStream, ScopeSwitcher, SwitchState

__all__ = [
    "AggregationError",
    "BaseEmoteProvider",
    "BTTVProvider",
    "ChannelEventStream",
    "Emote",
    "EmoteAggregator",
    "EmoteError",
    "EmoteImageRenderer",
    "EmoteRegistry",
    "EmoteSet",
    "EmoteSource",
    "FFZProvider",
    "ImageSet",
    "ImageSpec",
    "ScopeSwitcher",
    "SevenTVProvider",
    "SourceScope",
    "StaleAggregationError",
    "SwitchState",
    "TwitchProvider",
    "build_sources",
    "find_emotes",
]
