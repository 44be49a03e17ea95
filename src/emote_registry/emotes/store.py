"""In-memory emote store: emotes, named emote sets and the scope registry."""

from __future__ import annotations

import logging
import threading
import unicodedata
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol

from ..core.models import SIZE_KEYS, EmoteStatus, Provider, RawEmoteRecord, Visibility

logger = logging.getLogger(__name__)

TWITCH_SET_NAME = "twitch"
EMOJI_SET_NAME = "emoji"

TWITCH_CDN_TEMPLATE = "https://static-cdn.jtvnw.net/emoticons/v2/{id}/default/dark/{size}.0"


class EmoteRenderer(Protocol):
    """Anything that turns an emote into a visual element handle."""

    def render(self, emote: Emote) -> Any: ...


@dataclass(frozen=True)
class Emote:
    """A single emote, wrapping the raw record it was built from."""

    data: RawEmoteRecord

    @property
    def id(self) -> str:
        return self.data.id

    @property
    def name(self) -> str:
        return self.data.name

    @property
    def mime(self) -> str:
        return self.data.mime

    @property
    def tags(self) -> frozenset[str]:
        return frozenset(self.data.tags)

    @property
    def visibility(self) -> Visibility:
        return self.data.visibility

    @property
    def owner(self):
        return self.data.owner

    @property
    def provider(self) -> Provider:
        return self.data.provider

    @property
    def urls(self) -> tuple[tuple[str, str], ...]:
        return self.data.urls

    def cdn(self, size: str) -> str:
        """Get the URL of this emote at a size ("1" to "4").

        Falls back to the last listed URL when the size is missing.
        Twitch emotes are always served from the Twitch CDN template.
        """
        if self.provider == Provider.TWITCH:
            return TWITCH_CDN_TEMPLATE.format(id=self.id, size=size)

        for key, url in self.urls:
            if key == size:
                return url
        if self.urls:
            return self.urls[-1][1]
        return ""

    def is_global(self) -> bool:
        return Visibility.GLOBAL in self.visibility

    def is_private(self) -> bool:
        return Visibility.PRIVATE in self.visibility

    def is_zero_width(self) -> bool:
        return Visibility.ZERO_WIDTH in self.visibility

    def resolve(self) -> RawEmoteRecord:
        """Return the exact record this emote was constructed from."""
        return self.data


class EmoteSet:
    """A named collection of emotes, such as a channel's or a global set.

    The id -> emote mapping is rebuilt on every push and swapped in by
    reference, so readers never see a half-applied push.
    """

    def __init__(self, name: str):
        self.name = name
        self._emotes: dict[str, Emote] = {}

    @property
    def size(self) -> int:
        return len(self._emotes)

    def __len__(self) -> int:
        return len(self._emotes)

    def __iter__(self) -> Iterator[Emote]:
        return iter(list(self._emotes.values()))

    def __contains__(self, emote_id: object) -> bool:
        return emote_id in self._emotes

    def __repr__(self) -> str:
        return f"EmoteSet(name={self.name!r}, size={len(self._emotes)})"

    def push(
        self, records: Iterable[RawEmoteRecord | dict], override: bool = True
    ) -> EmoteSet:
        """Push emotes into this set.

        Args:
            records: Raw records (or their JSON dicts) to add.
            override: Replace the whole set when True; otherwise only
                entries whose id collides with a new record are replaced.

        Returns:
            This set.
        """
        emotes: dict[str, Emote] = {} if override else dict(self._emotes)
        skipped = 0
        for record in records:
            if not isinstance(record, RawEmoteRecord):
                record = RawEmoteRecord.from_dict(record)
                if record is None:
                    skipped += 1
                    continue
            emotes[record.id] = Emote(record)

        if skipped:
            logger.debug(f"Skipped {skipped} malformed emote records in set {self.name}")
        self._emotes = emotes
        return self

    def get_emotes(self) -> list[Emote]:
        return list(self._emotes.values())

    def get_emote_by_id(self, emote_id: str) -> Emote | None:
        return self._emotes.get(emote_id)

    def get_emote_by_name(self, name: str) -> Emote | None:
        for emote in self._emotes.values():
            if emote.name == name:
                return emote
        return None

    def resolve(self) -> dict:
        """Resolve this set into its data form."""
        return {
            "name": self.name,
            "emotes": [emote.resolve() for emote in self._emotes.values()],
        }


class EmoteRegistry:
    """Owns every installed emote set, keyed by scope name.

    Scopes are searched in insertion order. Rendered elements are cached
    by emote id across all scopes.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sets: dict[str, EmoteSet] = {}
        self._cached_elements: dict[str, Any] = {}

    @property
    def sets(self) -> dict[str, EmoteSet]:
        """Snapshot of the installed sets."""
        with self._lock:
            return dict(self._sets)

    @property
    def scopes(self) -> list[str]:
        with self._lock:
            return list(self._sets)

    def __len__(self) -> int:
        return len(self._sets)

    def __contains__(self, name: object) -> bool:
        return name in self._sets

    def get_set(self, name: str) -> EmoteSet | None:
        return self._sets.get(name)

    def enable_set(self, name: str, records: Iterable[RawEmoteRecord | dict]) -> EmoteSet:
        """Install a fresh set under name, replacing any existing one."""
        emote_set = EmoteSet(name).push(records)
        with self._lock:
            self._sets[name] = emote_set
        logger.debug(f"Enabled emote set: {name} ({emote_set.size} emotes)")
        return emote_set

    def disable_set(self, name: str) -> None:
        with self._lock:
            removed = self._sets.pop(name, None)
        if removed is not None:
            logger.debug(f"Disabled emote set: {name}")

    def clear(self) -> None:
        """Drop every set and cached element."""
        with self._lock:
            self._sets.clear()
            self._cached_elements.clear()

    def get_emote(self, name_or_id: str) -> Emote | None:
        """Find an emote across all scopes, matching ids before names.

        Every scope is searched for an id match before any scope is searched
        for a name, so an id in a later scope beats a name in an earlier one.
        A single pass checking name or id per emote would pick the earlier
        scope instead.
        """
        sets = list(self._sets.values())
        for emote_set in sets:
            emote = emote_set.get_emote_by_id(name_or_id)
            if emote:
                return emote
        for emote_set in sets:
            emote = emote_set.get_emote_by_name(name_or_id)
            if emote:
                return emote
        return None

    def name_map(self) -> dict[str, Emote]:
        """Map of emote name -> emote, first installed scope wins."""
        emote_map: dict[str, Emote] = {}
        for emote_set in list(self._sets.values()):
            for emote in emote_set:
                emote_map.setdefault(emote.name, emote)
        return emote_map

    # --- Element cache ---

    def add_element(self, emote_id: str, element: Any) -> Any:
        with self._lock:
            self._cached_elements[emote_id] = element
        return element

    def get_element(self, emote_id: str) -> Any | None:
        return self._cached_elements.get(emote_id)

    def render(self, emote: Emote, renderer: EmoteRenderer) -> Any:
        """Get the cached element for an emote, rendering it on first use."""
        element = self.get_element(emote.id)
        if element is not None:
            return element
        return self.add_element(emote.id, renderer.render(emote))

    # --- Ad-hoc emotes seen while rendering chat ---

    def _ensure_set(self, name: str) -> EmoteSet:
        with self._lock:
            emote_set = self._sets.get(name)
            if emote_set is None:
                emote_set = EmoteSet(name)
                self._sets[name] = emote_set
            return emote_set

    def from_twitch_emote(self, emote_id: str, name: str) -> Emote:
        """Add a native Twitch emote found in a chat line to the twitch set."""
        record = RawEmoteRecord(
            id=emote_id,
            name=name,
            provider=Provider.TWITCH,
            status=EmoteStatus.LIVE,
        )
        with self._lock:
            emote_set = self._ensure_set(TWITCH_SET_NAME)
            emote_set.push([record], override=False)
        return emote_set.get_emote_by_id(emote_id)  # type: ignore[return-value]

    def from_emoji(self, char: str, src: str) -> Emote:
        """Add an emoji image to the emoji set.

        The id is every code point of the emoji in upper-case hex, joined
        by "-", so flags, skin tones and ZWJ sequences get stable ids too.
        The name is the Unicode name of a single-code-point emoji (ignoring
        variation selectors) and empty for sequences Unicode does not name.
        """
        name = _emoji_name(char)
        emote_id = "-".join(f"{ord(c):X}" for c in char)

        record = RawEmoteRecord(
            id=emote_id,
            name=name,
            provider=Provider.EMOJI,
            visibility=Visibility.GLOBAL,
            urls=tuple((size, src) for size in SIZE_KEYS),
        )
        with self._lock:
            emote_set = self._ensure_set(EMOJI_SET_NAME)
            emote_set.push([record], override=False)
        return emote_set.get_emote_by_id(emote_id)  # type: ignore[return-value]


def _emoji_name(char: str) -> str:
    """Lower-cased Unicode name of an emoji, ignoring variation selectors."""
    stripped = char.replace("\ufe0f", "")
    if len(stripped) != 1:
        return ""
    return unicodedata.name(stripped, "").lower()
