"""Core models and settings for the emote registry."""

from .models import EmoteStatus, PartialUser, Provider, RawEmoteRecord, Visibility
from .settings import AggregationSettings, Settings, TwitchSettings

__all__ = [
    "EmoteStatus",
    "PartialUser",
    "Provider",
    "RawEmoteRecord",
    "Visibility",
    "Settings",
    "AggregationSettings",
    "TwitchSettings",
]
