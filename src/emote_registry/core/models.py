"""Core data models for the emote registry."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import Optional


class Provider(str, Enum):
    """Origin service of an emote record."""

    SEVENTV = "7TV"
    TWITCH = "TWITCH"
    EMOJI = "EMOJI"
    FFZ = "FFZ"
    BTTV = "BTTV"


class Visibility(IntFlag):
    """Emote visibility bits. Several may be set at once."""

    PRIVATE = 1 << 0
    GLOBAL = 1 << 1
    UNLISTED = 1 << 2
    OVERRIDE_BTTV = 1 << 3
    OVERRIDE_FFZ = 1 << 4
    OVERRIDE_TWITCH_GLOBAL = 1 << 5
    OVERRIDE_TWITCH_SUBSCRIBER = 1 << 6
    ZERO_WIDTH = 1 << 7


class EmoteStatus(IntEnum):
    """Moderation status of an emote."""

    DELETED = -1
    PROCESSING = 0
    PENDING = 1
    DISABLED = 2
    LIVE = 3


SIZE_KEYS = ("1", "2", "3", "4")


@dataclass(frozen=True)
class PartialUser:
    """Owner of an emote, as much of it as the provider tells us."""

    id: str = ""
    login: str = ""
    display_name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "PartialUser":
        return cls(
            id=str(data.get("id", "") or ""),
            login=data.get("login", "") or "",
            display_name=data.get("display_name", "") or "",
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "login": self.login, "display_name": self.display_name}


@dataclass(frozen=True)
class RawEmoteRecord:
    """An emote definition as delivered by a provider.

    Records are the unit that crosses the provider boundary. They are
    immutable so an Emote can hand back the exact record it was built from.
    """

    id: str
    name: str
    provider: Provider
    mime: str = ""
    tags: tuple[str, ...] = ()
    visibility: Visibility = Visibility(0)
    owner: Optional[PartialUser] = None
    urls: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    status: EmoteStatus = EmoteStatus.LIVE

    @classmethod
    def from_dict(cls, data: dict) -> Optional["RawEmoteRecord"]:
        """Build a record from its JSON form.

        Returns None when the record is unusable (missing id or name,
        unknown provider, or badly shaped fields).
        """
        if not isinstance(data, dict):
            return None

        emote_id = data.get("id")
        name = data.get("name")
        if not emote_id or not name:
            return None

        try:
            provider = Provider(data.get("provider", Provider.SEVENTV.value))
            visibility = Visibility(int(data.get("visibility") or 0))
            status = EmoteStatus(int(data.get("status", EmoteStatus.LIVE)))
            urls = tuple((str(size), str(url)) for size, url in data.get("urls") or [])
        except (TypeError, ValueError):
            return None

        owner_data = data.get("owner")
        owner = PartialUser.from_dict(owner_data) if isinstance(owner_data, dict) else None

        return cls(
            id=str(emote_id),
            name=str(name),
            provider=provider,
            mime=data.get("mime", "") or "",
            tags=tuple(str(t) for t in data.get("tags") or []),
            visibility=visibility,
            owner=owner,
            urls=urls,
            status=status,
        )

    def to_dict(self) -> dict:
        """Convert the record back to its JSON form."""
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider.value,
            "mime": self.mime,
            "tags": list(self.tags),
            "visibility": int(self.visibility),
            "owner": self.owner.to_dict() if self.owner else None,
            "urls": [[size, url] for size, url in self.urls],
            "status": int(self.status),
        }
