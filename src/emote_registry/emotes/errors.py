"""Exceptions raised by the emote aggregation pipeline."""


class EmoteError(Exception):
    """Base class for emote pipeline errors."""


class AggregationError(EmoteError):
    """Every provider source failed or returned nothing for a scope."""

    def __init__(self, scope: str, message: str = ""):
        self.scope = scope
        super().__init__(message or f"No emotes could be loaded for {scope}")


class StaleAggregationError(EmoteError):
    """A newer aggregation started before this one finished."""

    def __init__(self, scope: str):
        self.scope = scope
        super().__init__(f"Aggregation for {scope} was superseded")
