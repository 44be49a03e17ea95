"""Tests for provider response parsing and source construction."""

import aiohttp
import pytest

from emote_registry.core.models import PartialUser, Provider, Visibility
from emote_registry.core.settings import Settings
from emote_registry.emotes import provider as provider_module
from emote_registry.emotes.provider import (
    BTTVProvider,
    EmoteSource,
    FFZProvider,
    SevenTVProvider,
    SourceScope,
    TwitchProvider,
    build_sources,
    create_provider,
)


@pytest.fixture
def fake_http(monkeypatch):
    """Serve canned JSON by URL instead of hitting the network."""
    responses: dict = {}
    calls: list = []

    async def _get_json(url, params=None, headers=None):
        calls.append((url, params, headers))
        response = responses[url]
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(provider_module, "_get_json", _get_json)
    return responses, calls


# --- Twitch ---

TWITCH_EMOTE = {
    "id": "25",
    "name": "Kappa",
    "images": {"url_1x": "https://t/1", "url_2x": "https://t/2", "url_4x": "https://t/3"},
    "emote_type": "subscriptions",
}


def test_twitch_parse_emote():
    record = TwitchProvider()._parse_emote(TWITCH_EMOTE, global_scope=True)
    assert record.id == "25"
    assert record.provider == Provider.TWITCH
    assert record.urls == (("1", "https://t/1"), ("2", "https://t/2"), ("3", "https://t/3"))
    assert record.tags == ("subscriptions",)
    assert record.visibility == Visibility.GLOBAL


def test_twitch_parse_rejects_missing_name():
    assert TwitchProvider()._parse_emote({"id": "25"}) is None


@pytest.mark.asyncio
async def test_twitch_channel_emotes_send_credentials(fake_http):
    responses, calls = fake_http
    responses["https://api.twitch.tv/helix/chat/emotes"] = {"data": [TWITCH_EMOTE, "junk"]}

    records = await TwitchProvider(oauth_token="tok", client_id="cid").get_channel_emotes("123")

    assert [r.name for r in records] == ["Kappa"]
    assert records[0].visibility == Visibility(0)
    _, params, headers = calls[0]
    assert params == {"broadcaster_id": "123"}
    assert headers == {"Client-Id": "cid", "Authorization": "Bearer tok"}


def test_twitch_default_client_id():
    headers = TwitchProvider()._get_headers()
    assert headers["Client-Id"]
    assert "Authorization" not in headers


# --- 7TV ---

SEVENTV_ACTIVE = {
    "id": "e1",
    "name": "catJAM",
    "flags": 1,
    "data": {
        "id": "e1",
        "name": "catJAM",
        "flags": 0,
        "tags": ["cat"],
        "owner": {"id": "u1", "username": "owner", "display_name": "Owner"},
        "host": {
            "url": "//cdn.7tv.app/emote/e1",
            "files": [
                {"name": "1x.webp", "format": "WEBP"},
                {"name": "1x.avif", "format": "AVIF"},
                {"name": "2x.webp", "format": "WEBP"},
            ],
        },
    },
}


def test_seventv_parse_emote():
    record = SevenTVProvider()._parse_emote(SEVENTV_ACTIVE)
    assert record.id == "e1"
    assert record.urls == (
        ("1", "https://cdn.7tv.app/emote/e1/1x.webp"),
        ("2", "https://cdn.7tv.app/emote/e1/2x.webp"),
    )
    assert record.visibility == Visibility.ZERO_WIDTH
    assert record.tags == ("cat",)
    assert record.owner == PartialUser(id="u1", login="owner", display_name="Owner")
    assert record.mime == "image/webp"


def test_seventv_alias_name_and_private_flag():
    data = {"id": "e2", "name": "Alias", "data": {"id": "e2", "name": "Original", "flags": 1}}
    record = SevenTVProvider()._parse_emote(data, global_scope=True)
    assert record.name == "Alias"
    assert record.visibility == Visibility.GLOBAL | Visibility.PRIVATE


def test_seventv_zero_width_emote_flag():
    data = {"id": "e3", "name": "x", "data": {"flags": 1 << 8}}
    record = SevenTVProvider()._parse_emote(data)
    assert Visibility.ZERO_WIDTH in record.visibility
    assert Visibility.PRIVATE not in record.visibility


def test_seventv_without_host_synthesizes_urls():
    record = SevenTVProvider()._parse_emote({"id": "e4", "name": "x"})
    assert [size for size, _ in record.urls] == ["1", "2", "3", "4"]
    assert record.urls[3][1] == "https://cdn.7tv.app/emote/e4/4x.webp"


@pytest.mark.asyncio
async def test_seventv_channel_without_emote_set(fake_http):
    responses, _ = fake_http
    responses["https://7tv.io/v3/users/twitch/123"] = {"emote_set": None}
    assert await SevenTVProvider().get_channel_emotes("123") == []


@pytest.mark.asyncio
async def test_seventv_global_marks_records_global(fake_http):
    responses, _ = fake_http
    responses["https://7tv.io/v3/emote-sets/global"] = {"emotes": [SEVENTV_ACTIVE]}
    records = await SevenTVProvider().get_global_emotes()
    assert records[0].visibility == Visibility.GLOBAL | Visibility.ZERO_WIDTH


# --- FFZ ---


def _ffz(emote_id, name, **extra):
    return {"id": emote_id, "name": name, "urls": {"1": f"//cdn.ffz/{emote_id}/1"}, **extra}


@pytest.mark.asyncio
async def test_ffz_global_uses_default_sets(fake_http):
    responses, _ = fake_http
    responses["https://api.frankerfacez.com/v1/set/global"] = {
        "default_sets": [3],
        "sets": {
            "3": {"emoticons": [_ffz(9, "ZreknarF")]},
            "4": {"emoticons": [_ffz(10, "Hidden")]},
        },
    }
    records = await FFZProvider().get_global_emotes()
    assert [r.name for r in records] == ["ZreknarF"]
    assert records[0].id == "9"
    assert records[0].urls == (("1", "https://cdn.ffz/9/1"),)
    assert records[0].visibility == Visibility.GLOBAL


@pytest.mark.asyncio
async def test_ffz_channel_reads_every_room_set(fake_http):
    responses, _ = fake_http
    responses["https://api.frankerfacez.com/v1/room/id/123"] = {
        "sets": {
            "1": {"emoticons": [_ffz(1, "A")]},
            "2": {"emoticons": [_ffz(2, "B", modifier=True)]},
        }
    }
    records = await FFZProvider().get_channel_emotes("123")
    assert [r.name for r in records] == ["A", "B"]
    assert records[1].visibility == Visibility.ZERO_WIDTH


def test_ffz_parse_emote_owner_and_scales():
    data = {
        "id": 5,
        "name": "LilZ",
        "urls": {"1": "//a/1", "2": "https://a/2", "4": "//a/4"},
        "owner": {"_id": 7, "name": "ffzuser", "display_name": "FFZUser"},
    }
    record = FFZProvider()._parse_emote(data)
    assert record.urls == (("1", "https://a/1"), ("2", "https://a/2"), ("4", "https://a/4"))
    assert record.owner == PartialUser(id="7", login="ffzuser", display_name="FFZUser")


def test_ffz_parse_emote_without_urls():
    assert FFZProvider()._parse_emote({"id": 1, "name": "x", "urls": {}}) is None


# --- BTTV ---


@pytest.mark.asyncio
async def test_bttv_global_emotes(fake_http):
    responses, _ = fake_http
    responses["https://api.betterttv.net/3/cached/emotes/global"] = [
        {"id": "b1", "code": "FeelsGoodMan", "imageType": "png"},
        {"id": "b2"},
    ]
    records = await BTTVProvider().get_global_emotes()
    assert len(records) == 1
    record = records[0]
    assert record.name == "FeelsGoodMan"
    assert record.mime == "image/png"
    assert record.visibility == Visibility.GLOBAL
    assert record.urls[0] == ("1", "https://cdn.betterttv.net/emote/b1/1x")


@pytest.mark.asyncio
async def test_bttv_channel_includes_shared(fake_http):
    responses, _ = fake_http
    responses["https://api.betterttv.net/3/cached/users/twitch/123"] = {
        "channelEmotes": [{"id": "c1", "code": "Own", "imageType": "gif"}],
        "sharedEmotes": [
            {
                "id": "s1",
                "code": "Shared",
                "imageType": "png",
                "user": {"providerId": "77", "name": "someone", "displayName": "Someone"},
            }
        ],
    }
    records = await BTTVProvider().get_channel_emotes("123")
    assert [r.name for r in records] == ["Own", "Shared"]
    assert records[0].mime == "image/gif"
    assert records[1].owner == PartialUser(id="77", login="someone", display_name="Someone")


@pytest.mark.asyncio
async def test_http_errors_propagate(fake_http):
    responses, _ = fake_http
    responses["https://api.betterttv.net/3/cached/emotes/global"] = aiohttp.ClientError("503")
    with pytest.raises(aiohttp.ClientError):
        await BTTVProvider().get_global_emotes()


# --- Sources ---


def test_build_sources_default_order():
    labels = [source.label for source in build_sources(Settings())]
    assert labels == [
        "twitch/channel",
        "twitch/global",
        "7tv/channel",
        "7tv/global",
        "ffz/channel",
        "ffz/global",
        "bttv/channel",
        "bttv/global",
    ]


def test_build_sources_skips_unknown_providers():
    settings = Settings()
    settings.aggregation.providers = ["bttv", "nope"]
    assert [source.label for source in build_sources(settings)] == ["bttv/channel", "bttv/global"]


def test_create_provider_passes_twitch_credentials():
    settings = Settings()
    settings.twitch.client_id = "cid"
    settings.twitch.oauth_token = "tok"
    twitch = create_provider("twitch", settings)
    assert isinstance(twitch, TwitchProvider)
    assert twitch.client_id == "cid"
    assert twitch.oauth_token == "tok"
    assert create_provider("nope", settings) is None


@pytest.mark.asyncio
async def test_source_fetch_routes_by_scope(fake_http):
    responses, calls = fake_http
    responses["https://api.betterttv.net/3/cached/emotes/global"] = []
    responses["https://api.betterttv.net/3/cached/users/twitch/123"] = {}
    bttv = BTTVProvider()

    await EmoteSource(bttv, SourceScope.GLOBAL).fetch("123")
    await EmoteSource(bttv, SourceScope.CHANNEL).fetch("123")

    assert [url for url, _, _ in calls] == [
        "https://api.betterttv.net/3/cached/emotes/global",
        "https://api.betterttv.net/3/cached/users/twitch/123",
    ]
