"""Tests for owner profile lookups and the Discord notification sink."""

import json

import pytest
from unittest.mock import AsyncMock, Mock

import discord

from bot import DiscordNotificationSink, DISCORD_MESSAGE_LIMIT
from domains.reminders.profiles import JsonProfileLookup, StaticProfileLookup


class TestJsonProfileLookup:

    @pytest.mark.asyncio
    async def test_reads_owner_file(self, tmp_path):
        (tmp_path / "chat-1.json").write_text(json.dumps({"userName": "Sam"}), encoding="utf-8")

        assert await JsonProfileLookup(tmp_path).get_profile("chat-1") == {"userName": "Sam"}

    @pytest.mark.asyncio
    async def test_missing_owner(self, tmp_path):
        assert await JsonProfileLookup(tmp_path).get_profile("chat-1") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["{broken", "[1, 2]", '"just a string"'])
    async def test_unusable_file(self, tmp_path, content):
        (tmp_path / "chat-1.json").write_text(content, encoding="utf-8")

        assert await JsonProfileLookup(tmp_path).get_profile("chat-1") is None


class TestStaticProfileLookup:

    @pytest.mark.asyncio
    async def test_default_is_blank(self):
        assert await StaticProfileLookup().get_profile("anyone") == {}

    @pytest.mark.asyncio
    async def test_returns_copy(self):
        lookup = StaticProfileLookup({"companionName": "Nova"})

        profile = await lookup.get_profile("chat-1")
        profile["companionName"] = "changed"

        assert await lookup.get_profile("chat-2") == {"companionName": "Nova"}


class TestDiscordNotificationSink:
    """Delivery to the channel whose ID is the owner ID."""

    def _client(self, channel):
        client = Mock()
        client.get_channel = Mock(return_value=channel)
        client.fetch_channel = AsyncMock(return_value=channel)
        return client

    @pytest.mark.asyncio
    async def test_sends_to_cached_channel(self):
        channel = Mock()
        channel.send = AsyncMock()
        client = self._client(channel)

        assert await DiscordNotificationSink(client).send("1234", "hello") is True

        client.get_channel.assert_called_once_with(1234)
        client.fetch_channel.assert_not_awaited()
        channel.send.assert_awaited_once_with("hello")

    @pytest.mark.asyncio
    async def test_fetches_uncached_channel(self):
        channel = Mock()
        channel.send = AsyncMock()
        client = self._client(channel)
        client.get_channel.return_value = None

        assert await DiscordNotificationSink(client).send("1234", "hello") is True
        client.fetch_channel.assert_awaited_once_with(1234)

    @pytest.mark.asyncio
    async def test_splits_long_messages(self):
        channel = Mock()
        channel.send = AsyncMock()

        await DiscordNotificationSink(self._client(channel)).send("1234", "x" * (DISCORD_MESSAGE_LIMIT + 10))

        assert channel.send.await_count == 2

    @pytest.mark.asyncio
    async def test_non_numeric_owner(self):
        assert await DiscordNotificationSink(self._client(Mock())).send("chat-1", "hello") is False

    @pytest.mark.asyncio
    async def test_http_error(self):
        channel = Mock()
        channel.send = AsyncMock(side_effect=discord.HTTPException(Mock(status=500, reason="boom"), "boom"))

        assert await DiscordNotificationSink(self._client(channel)).send("1234", "hello") is False
