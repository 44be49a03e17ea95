"""Emote providers for Twitch, 7TV, FFZ, and BTTV.

Providers raise on HTTP and decode errors. The aggregator decides what a
failed provider call means for the scope being loaded.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import aiohttp

from ..core.models import SIZE_KEYS, PartialUser, Provider, RawEmoteRecord, Visibility
from ..core.settings import Settings

logger = logging.getLogger(__name__)

# Default Twitch client ID for unauthenticated requests
_DEFAULT_TWITCH_CLIENT_ID = "kimne78kx3ncx6brgo4mv6wki5h1ko"
REQUEST_TIMEOUT = 15  # seconds


async def _get_json(url: str, params: dict | None = None, headers: dict | None = None):
    """GET a JSON document, raising on non-2xx responses."""
    async with aiohttp.ClientSession(headers=headers) as session:
        async with session.get(
            url,
            params=params,
            timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
        ) as resp:
            resp.raise_for_status()
            return await resp.json(content_type=None)


def _https(url: str) -> str:
    if url.startswith("//"):
        return "https:" + url
    return url


class BaseEmoteProvider(ABC):
    """Base class for emote providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""

    @abstractmethod
    async def get_global_emotes(self) -> list[RawEmoteRecord]:
        """Fetch global emotes for this provider."""

    @abstractmethod
    async def get_channel_emotes(self, channel_id: str) -> list[RawEmoteRecord]:
        """Fetch channel-specific emotes.

        Args:
            channel_id: The Twitch user ID of the channel.
        """

    def _parse_all(self, items, global_scope: bool = False) -> list[RawEmoteRecord]:
        records: list[RawEmoteRecord] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            record = self._parse_emote(item, global_scope=global_scope)
            if record:
                records.append(record)
        return records

    @abstractmethod
    def _parse_emote(self, data: dict, global_scope: bool = False) -> RawEmoteRecord | None:
        """Parse one emote from API data, or None if it is unusable."""


class TwitchProvider(BaseEmoteProvider):
    """Native Twitch emote provider using Helix API."""

    BASE_URL = "https://api.twitch.tv/helix"

    def __init__(self, oauth_token: str = "", client_id: str = ""):
        self.oauth_token = oauth_token
        self.client_id = client_id or _DEFAULT_TWITCH_CLIENT_ID

    @property
    def name(self) -> str:
        return "twitch"

    def _get_headers(self) -> dict:
        """Get headers for Twitch API requests."""
        headers = {"Client-Id": self.client_id}
        if self.oauth_token:
            headers["Authorization"] = f"Bearer {self.oauth_token}"
        return headers

    async def get_global_emotes(self) -> list[RawEmoteRecord]:
        """Fetch Twitch global emotes."""
        data = await _get_json(f"{self.BASE_URL}/chat/emotes/global", headers=self._get_headers())
        return self._parse_all(data.get("data", []), global_scope=True)

    async def get_channel_emotes(self, channel_id: str) -> list[RawEmoteRecord]:
        """Fetch Twitch channel emotes (subscriber, follower, bits)."""
        data = await _get_json(
            f"{self.BASE_URL}/chat/emotes",
            params={"broadcaster_id": channel_id},
            headers=self._get_headers(),
        )
        return self._parse_all(data.get("data", []))

    def _parse_emote(self, data: dict, global_scope: bool = False) -> RawEmoteRecord | None:
        """Parse a Twitch emote from Helix API data."""
        emote_id = data.get("id", "")
        name = data.get("name", "")

        if not emote_id or not name:
            return None

        # Helix only serves 1.0, 2.0 and 3.0 (labelled url_4x)
        images = data.get("images", {}) or {}
        urls = tuple(
            (size, images[key])
            for size, key in (("1", "url_1x"), ("2", "url_2x"), ("3", "url_4x"))
            if images.get(key)
        )

        return RawEmoteRecord(
            id=str(emote_id),
            name=name,
            provider=Provider.TWITCH,
            mime="image/png",
            tags=tuple(t for t in [data.get("emote_type")] if t),
            visibility=Visibility.GLOBAL if global_scope else Visibility(0),
            urls=urls,
        )


class SevenTVProvider(BaseEmoteProvider):
    """7TV emote provider."""

    BASE_URL = "https://7tv.io/v3"

    # Active-emote flag and emote-data flags (7TV v3)
    ACTIVE_ZERO_WIDTH = 1 << 0
    EMOTE_PRIVATE = 1 << 0
    EMOTE_ZERO_WIDTH = 1 << 8

    @property
    def name(self) -> str:
        return "7tv"

    async def get_global_emotes(self) -> list[RawEmoteRecord]:
        """Fetch 7TV global emotes."""
        data = await _get_json(f"{self.BASE_URL}/emote-sets/global")
        return self._parse_all(data.get("emotes", []), global_scope=True)

    async def get_channel_emotes(self, channel_id: str) -> list[RawEmoteRecord]:
        """Fetch 7TV channel emotes."""
        data = await _get_json(f"{self.BASE_URL}/users/twitch/{channel_id}")
        emote_set = data.get("emote_set") or {}
        return self._parse_all(emote_set.get("emotes") or [])

    def _parse_emote(self, data: dict, global_scope: bool = False) -> RawEmoteRecord | None:
        """Parse a 7TV emote from API data."""
        emote_data = data.get("data") or data
        emote_id = emote_data.get("id", data.get("id", ""))
        name = data.get("name", emote_data.get("name", ""))

        if not emote_id or not name:
            return None

        host = emote_data.get("host") or {}
        base_url = _https(host.get("url", f"//cdn.7tv.app/emote/{emote_id}"))
        files = [
            f for f in host.get("files") or [] if f.get("format") == "WEBP" and f.get("name")
        ]
        if files:
            urls = tuple((f["name"][0], f"{base_url}/{f['name']}") for f in files)
        else:
            urls = tuple((size, f"{base_url}/{size}x.webp") for size in SIZE_KEYS)

        visibility = Visibility.GLOBAL if global_scope else Visibility(0)
        active_flags = data.get("flags", 0) or 0
        emote_flags = (data.get("data") or {}).get("flags", 0) or 0
        if emote_flags & self.EMOTE_PRIVATE:
            visibility |= Visibility.PRIVATE
        if active_flags & self.ACTIVE_ZERO_WIDTH or emote_flags & self.EMOTE_ZERO_WIDTH:
            visibility |= Visibility.ZERO_WIDTH

        owner_data = emote_data.get("owner")
        owner = None
        if isinstance(owner_data, dict):
            owner = PartialUser(
                id=str(owner_data.get("id", "")),
                login=owner_data.get("username", ""),
                display_name=owner_data.get("display_name", ""),
            )

        return RawEmoteRecord(
            id=str(emote_id),
            name=name,
            provider=Provider.SEVENTV,
            mime="image/webp",
            tags=tuple(emote_data.get("tags") or []),
            visibility=visibility,
            owner=owner,
            urls=urls,
        )


class FFZProvider(BaseEmoteProvider):
    """FrankerFaceZ emote provider."""

    BASE_URL = "https://api.frankerfacez.com/v1"

    @property
    def name(self) -> str:
        return "ffz"

    async def get_global_emotes(self) -> list[RawEmoteRecord]:
        """Fetch FFZ global emotes."""
        data = await _get_json(f"{self.BASE_URL}/set/global")
        records: list[RawEmoteRecord] = []
        for set_id in data.get("default_sets", []):
            emote_set = data.get("sets", {}).get(str(set_id), {})
            records.extend(self._parse_all(emote_set.get("emoticons", []), global_scope=True))
        return records

    async def get_channel_emotes(self, channel_id: str) -> list[RawEmoteRecord]:
        """Fetch FFZ channel emotes."""
        data = await _get_json(f"{self.BASE_URL}/room/id/{channel_id}")
        records: list[RawEmoteRecord] = []
        for set_data in data.get("sets", {}).values():
            records.extend(self._parse_all(set_data.get("emoticons", [])))
        return records

    def _parse_emote(self, data: dict, global_scope: bool = False) -> RawEmoteRecord | None:
        """Parse an FFZ emote from API data."""
        emote_id = str(data.get("id", ""))
        name = data.get("name", "")

        if not emote_id or not name:
            return None

        # FFZ serves scales 1, 2 and 4
        raw_urls = data.get("urls", {}) or {}
        urls = tuple(
            (size, _https(raw_urls[size])) for size in SIZE_KEYS if raw_urls.get(size)
        )
        if not urls:
            return None

        visibility = Visibility.GLOBAL if global_scope else Visibility(0)
        if data.get("modifier"):
            visibility |= Visibility.ZERO_WIDTH

        owner_data = data.get("owner")
        owner = None
        if isinstance(owner_data, dict):
            owner = PartialUser(
                id=str(owner_data.get("_id", "")),
                login=owner_data.get("name", ""),
                display_name=owner_data.get("display_name", ""),
            )

        return RawEmoteRecord(
            id=emote_id,
            name=name,
            provider=Provider.FFZ,
            mime="image/png",
            visibility=visibility,
            owner=owner,
            urls=urls,
        )


class BTTVProvider(BaseEmoteProvider):
    """BetterTTV emote provider."""

    BASE_URL = "https://api.betterttv.net/3"
    CDN_URL = "https://cdn.betterttv.net/emote"

    @property
    def name(self) -> str:
        return "bttv"

    async def get_global_emotes(self) -> list[RawEmoteRecord]:
        """Fetch BTTV global emotes."""
        data = await _get_json(f"{self.BASE_URL}/cached/emotes/global")
        return self._parse_all(data, global_scope=True)

    async def get_channel_emotes(self, channel_id: str) -> list[RawEmoteRecord]:
        """Fetch BTTV channel and shared emotes."""
        data = await _get_json(f"{self.BASE_URL}/cached/users/twitch/{channel_id}")
        records = self._parse_all(data.get("channelEmotes", []))
        records.extend(self._parse_all(data.get("sharedEmotes", [])))
        return records

    def _parse_emote(self, data: dict, global_scope: bool = False) -> RawEmoteRecord | None:
        """Parse a BTTV emote from API data."""
        emote_id = data.get("id", "")
        code = data.get("code", "")

        if not emote_id or not code:
            return None

        # BTTV CDN: https://cdn.betterttv.net/emote/{id}/{size}x
        urls = tuple((size, f"{self.CDN_URL}/{emote_id}/{size}x") for size in ("1", "2", "3"))

        user = data.get("user")
        owner = None
        if isinstance(user, dict):
            owner = PartialUser(
                id=str(user.get("providerId") or user.get("id", "")),
                login=user.get("name", ""),
                display_name=user.get("displayName", ""),
            )

        image_type = data.get("imageType", "")
        return RawEmoteRecord(
            id=emote_id,
            name=code,
            provider=Provider.BTTV,
            mime=f"image/{image_type}" if image_type else "",
            visibility=Visibility.GLOBAL if global_scope else Visibility(0),
            owner=owner,
            urls=urls,
        )


class SourceScope(str, Enum):
    """Which endpoint of a provider a source queries."""

    CHANNEL = "channel"
    GLOBAL = "global"


@dataclass(frozen=True)
class EmoteSource:
    """One provider endpoint taking part in a channel's aggregation."""

    provider: BaseEmoteProvider
    scope: SourceScope

    @property
    def label(self) -> str:
        return f"{self.provider.name}/{self.scope.value}"

    async def fetch(self, channel_id: str) -> list[RawEmoteRecord]:
        if self.scope == SourceScope.GLOBAL:
            return await self.provider.get_global_emotes()
        return await self.provider.get_channel_emotes(channel_id)


def create_provider(name: str, settings: Settings) -> BaseEmoteProvider | None:
    """Create a provider by its settings name."""
    if name == "twitch":
        return TwitchProvider(
            oauth_token=settings.twitch.oauth_token,
            client_id=settings.twitch.client_id,
        )

    provider_map = {
        "7tv": SevenTVProvider,
        "ffz": FFZProvider,
        "bttv": BTTVProvider,
    }
    provider_cls = provider_map.get(name)
    if not provider_cls:
        return None
    return provider_cls()


def build_sources(settings: Settings) -> list[EmoteSource]:
    """Ordered sources for the enabled providers, channel before global."""
    sources: list[EmoteSource] = []
    for name in settings.aggregation.providers:
        provider = create_provider(name, settings)
        if not provider:
            logger.debug(f"Unknown emote provider in settings: {name}")
            continue
        sources.append(EmoteSource(provider, SourceScope.CHANNEL))
        sources.append(EmoteSource(provider, SourceScope.GLOBAL))
    return sources
