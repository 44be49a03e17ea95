"""Shared test fixtures for emote_registry tests."""

import asyncio

import pytest

from emote_registry.core.models import Provider, RawEmoteRecord, Visibility
from emote_registry.emotes.provider import BaseEmoteProvider, EmoteSource, SourceScope
from emote_registry.emotes.store import EmoteRegistry


def _record(
    emote_id: str,
    name: str | None = None,
    provider: Provider = Provider.SEVENTV,
    urls: tuple = (),
    visibility: Visibility = Visibility(0),
) -> RawEmoteRecord:
    return RawEmoteRecord(
        id=emote_id,
        name=name or emote_id.upper(),
        provider=provider,
        urls=urls,
        visibility=visibility,
    )


class FakeProvider(BaseEmoteProvider):
    """Provider serving canned records, optionally failing or waiting on a gate."""

    def __init__(
        self,
        name: str = "fake",
        channel=None,
        global_emotes=None,
        error: Exception | None = None,
        gates: dict[str, asyncio.Event] | None = None,
        delay: float = 0.0,
    ):
        self._name = name
        self.channel_emotes = channel or []
        self.global_emotes = global_emotes or []
        self.error = error
        self.gates = gates or {}
        self.delay = delay
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    async def _respond(self, key: str, records) -> list[RawEmoteRecord]:
        self.calls.append(key)
        gate = self.gates.get(key)
        if gate:
            await gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return list(records)

    async def get_global_emotes(self) -> list[RawEmoteRecord]:
        return await self._respond("global", self.global_emotes)

    async def get_channel_emotes(self, channel_id: str) -> list[RawEmoteRecord]:
        records = self.channel_emotes
        if isinstance(records, dict):
            records = records.get(channel_id, [])
        return await self._respond(channel_id, records)

    def _parse_emote(self, data: dict, global_scope: bool = False) -> RawEmoteRecord | None:
        return RawEmoteRecord.from_dict(data)


@pytest.fixture
def make_record():
    return _record


@pytest.fixture
def make_source():
    def _source(records=None, scope: SourceScope = SourceScope.CHANNEL, **kwargs) -> EmoteSource:
        if scope == SourceScope.GLOBAL:
            provider = FakeProvider(global_emotes=records, **kwargs)
        else:
            provider = FakeProvider(channel=records, **kwargs)
        return EmoteSource(provider, scope)

    return _source


@pytest.fixture
def registry():
    return EmoteRegistry()


@pytest.fixture
def seventv_record():
    return _record(
        "60ae958e229664e8667aea38",
        name="catJAM",
        urls=(
            ("1", "https://cdn.7tv.app/emote/a/1x.webp"),
            ("2", "https://cdn.7tv.app/emote/a/2x.webp"),
        ),
        visibility=Visibility.GLOBAL | Visibility.ZERO_WIDTH,
    )
