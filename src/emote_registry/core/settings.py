"""Settings management for the emote registry."""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from appdirs import user_config_dir

APP_NAME = "emote-registry"
APP_AUTHOR = "emote-registry"

# Providers the aggregator knows how to query, in default fan-out order
KNOWN_PROVIDERS = ("twitch", "7tv", "ffz", "bttv")
DEFAULT_SOURCE_TIMEOUT = 15.0  # seconds


def get_config_dir() -> Path:
    """Get the configuration directory."""
    path = Path(user_config_dir(APP_NAME, APP_AUTHOR))
    path.mkdir(parents=True, exist_ok=True)
    return path


@dataclass
class TwitchSettings:
    """Twitch Helix credentials used for native emotes."""

    client_id: str = ""
    oauth_token: str = ""


@dataclass
class AggregationSettings:
    """Provider fan-out settings."""

    providers: list[str] = field(default_factory=lambda: list(KNOWN_PROVIDERS))
    source_timeout: float = DEFAULT_SOURCE_TIMEOUT  # per provider call


@dataclass
class Settings:
    """Application settings."""

    twitch: TwitchSettings = field(default_factory=TwitchSettings)
    aggregation: AggregationSettings = field(default_factory=AggregationSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from file."""
        if path is None:
            path = get_config_dir() / "settings.json"

        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return cls._from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError):
            return cls()

    def save(self, path: Path | None = None) -> None:
        """Save settings to file."""
        if path is None:
            path = get_config_dir() / "settings.json"

        path.parent.mkdir(parents=True, exist_ok=True)

        # Atomic write: write to temp file then rename to prevent corruption on crash
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix="settings_")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._to_dict(), f, indent=2)
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    @staticmethod
    def _validate_float(
        value, default: float, min_val: float = 0.0, max_val: float | None = None
    ) -> float:
        """Validate and constrain a numeric value."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        if value < min_val:
            return min_val
        if max_val is not None and value > max_val:
            return max_val
        return float(value)

    @staticmethod
    def _validate_providers(value) -> list[str]:
        """Keep known provider names in the given order, dropping duplicates."""
        if not isinstance(value, list):
            return list(KNOWN_PROVIDERS)
        providers: list[str] = []
        for name in value:
            if name in KNOWN_PROVIDERS and name not in providers:
                providers.append(name)
        return providers

    @classmethod
    def _from_dict(cls, data: dict) -> "Settings":
        """Create Settings from a dictionary with validation."""
        settings = cls()

        if "twitch" in data:
            t = data["twitch"]
            settings.twitch = TwitchSettings(
                client_id=t.get("client_id", ""),
                oauth_token=t.get("oauth_token", ""),
            )

        if "aggregation" in data:
            a = data["aggregation"]
            settings.aggregation = AggregationSettings(
                providers=cls._validate_providers(a.get("providers")),
                source_timeout=cls._validate_float(
                    a.get("source_timeout"), DEFAULT_SOURCE_TIMEOUT, min_val=1.0, max_val=120.0
                ),
            )

        return settings

    def _to_dict(self) -> dict:
        """Convert Settings to a dictionary."""
        return {
            "twitch": {
                "client_id": self.twitch.client_id,
                "oauth_token": self.twitch.oauth_token,
            },
            "aggregation": {
                "providers": list(self.aggregation.providers),
                "source_timeout": self.aggregation.source_timeout,
            },
        }
