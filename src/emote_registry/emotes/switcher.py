"""Channel switching: tears down the old scope and loads the new one."""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum

from PySide6.QtCore import QObject, Signal

from .aggregator import EmoteAggregator
from .errors import AggregationError, StaleAggregationError

logger = logging.getLogger(__name__)


class SwitchState(str, Enum):
    """Scope switcher states."""

    IDLE = "idle"
    SWITCHING = "switching"


class ChannelEventStream(ABC):
    """Live emote event subscription, one channel at a time."""

    @abstractmethod
    def add_channel(self, channel_id: str) -> None:
        """Start receiving events for a channel."""

    @abstractmethod
    def remove_channel(self, channel_id: str) -> None:
        """Stop receiving events for a channel."""


class ScopeSwitcher(QObject):
    """Sequences channel changes against the registry.

    Only the latest switch request takes effect; an earlier one still
    loading is cancelled and its result is never installed.
    """

    # Emitted when scope-dependent UI should be hidden (previous channel_id or "")
    scope_cleared = Signal(str)
    # Emitted after the new channel's emotes are installed (channel_id)
    scope_changed = Signal(str)
    # Emitted when no emotes could be loaded (channel_id, error_message)
    scope_failed = Signal(str, str)

    def __init__(
        self,
        aggregator: EmoteAggregator,
        events: ChannelEventStream | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.aggregator = aggregator
        self.registry = aggregator.registry
        self.events = events
        self._state = SwitchState.IDLE
        self._current_scope = ""
        self._target_scope = ""
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> SwitchState:
        return self._state

    @property
    def current_scope(self) -> str:
        """The channel whose emotes are loaded, or "" if none."""
        return self._current_scope

    @property
    def target_scope(self) -> str:
        """The channel being switched to while SWITCHING."""
        return self._target_scope

    def request_switch(self, channel_id: str, alias: str = "") -> asyncio.Task:
        """Schedule a switch, cancelling any switch still in progress.

        Must be called from a running event loop.
        """
        if self._task and not self._task.done():
            logger.debug(f"Cancelling switch to {self._target_scope} in favour of {channel_id}")
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(
            self.switch_channel(channel_id, alias)
        )
        return self._task

    async def switch_channel(self, channel_id: str, alias: str = "") -> bool:
        """Switch the active scope to a channel.

        Args:
            channel_id: The channel to load emotes for.
            alias: Another scope name the channel may be installed under.

        Returns:
            True if the channel's emotes were installed.
        """
        previous = self._current_scope
        self._state = SwitchState.SWITCHING
        self._target_scope = channel_id

        if previous:
            self.registry.disable_set(previous)
        self.registry.disable_set(channel_id)
        if alias:
            self.registry.disable_set(alias)
        self._current_scope = ""
        self.scope_cleared.emit(previous)

        if previous and self.events:
            self.events.remove_channel(previous)

        try:
            await self.aggregator.aggregate(channel_id)
        except StaleAggregationError:
            return False
        except AggregationError as e:
            logger.error(
                f"Failed to fetch emotes for channel {channel_id} ({e}), "
                "emotes will be disabled"
            )
            self._finish()
            self.scope_failed.emit(channel_id, str(e))
            return False
        except asyncio.CancelledError:
            if self._target_scope == channel_id:
                self._finish()
            raise

        self._current_scope = channel_id
        self._finish()
        self.scope_changed.emit(channel_id)
        if self.events:
            self.events.add_channel(channel_id)
        return True

    async def close(self) -> None:
        """Cancel any pending switch and unload the current channel."""
        self.aggregator.supersede()
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        if self._current_scope:
            if self.events:
                self.events.remove_channel(self._current_scope)
            self.registry.disable_set(self._current_scope)
        self._current_scope = ""
        self._finish()

    def _finish(self) -> None:
        self._state = SwitchState.IDLE
        self._target_scope = ""
