"""Tests for the voice guard helpers used by the music cog."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from discord_jukebox.domain.shared.messages import DiscordUIMessages
from discord_jukebox.infrastructure.discord.guards.voice_guards import (
    ensure_voice_capability,
    get_member,
    member_voice_channel,
    missing_voice_permissions,
)


def _make_channel(*, connect: bool = True, speak: bool = True) -> MagicMock:
    channel = MagicMock(spec=discord.VoiceChannel)
    permissions = MagicMock()
    permissions.connect = connect
    permissions.speak = speak
    channel.permissions_for.return_value = permissions
    return channel


def _make_ctx(author) -> MagicMock:
    ctx = MagicMock()
    ctx.reply = AsyncMock()
    ctx.guild = MagicMock()
    ctx.author = author
    return ctx


# =============================================================================
# get_member
# =============================================================================


class TestGetMember:
    @pytest.mark.asyncio
    async def test_returns_member(self):
        member = MagicMock(spec=discord.Member)
        ctx = _make_ctx(member)

        assert await get_member(ctx) is member
        ctx.reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_plain_user(self):
        ctx = _make_ctx(MagicMock(spec=discord.User))

        assert await get_member(ctx) is None
        ctx.reply.assert_awaited_once_with(DiscordUIMessages.STATE_SERVER_ONLY)

    @pytest.mark.asyncio
    async def test_rejects_direct_messages(self):
        ctx = _make_ctx(MagicMock(spec=discord.Member))
        ctx.guild = None

        assert await get_member(ctx) is None


# =============================================================================
# member_voice_channel
# =============================================================================


class TestMemberVoiceChannel:
    def test_member_in_voice(self):
        member = MagicMock(spec=discord.Member)
        channel = _make_channel()
        member.voice = MagicMock(channel=channel)

        assert member_voice_channel(member) is channel

    def test_member_not_in_voice(self):
        member = MagicMock(spec=discord.Member)
        member.voice = None

        assert member_voice_channel(member) is None

    def test_voice_state_without_channel(self):
        member = MagicMock(spec=discord.Member)
        member.voice = MagicMock(channel=None)

        assert member_voice_channel(member) is None


# =============================================================================
# Permissions
# =============================================================================


class TestVoicePermissions:
    def test_nothing_missing(self):
        assert missing_voice_permissions(_make_channel(), MagicMock()) == []

    def test_lists_missing_permissions(self):
        channel = _make_channel(connect=False, speak=False)

        assert missing_voice_permissions(channel, MagicMock()) == ["connect", "speak"]

    @pytest.mark.asyncio
    async def test_ensure_capability_passes(self):
        ctx = _make_ctx(MagicMock(spec=discord.Member))

        assert await ensure_voice_capability(ctx, _make_channel()) is True
        ctx.reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_ensure_capability_replies_with_missing(self):
        ctx = _make_ctx(MagicMock(spec=discord.Member))

        assert await ensure_voice_capability(ctx, _make_channel(connect=False)) is False
        ctx.reply.assert_awaited_once_with(
            DiscordUIMessages.ERROR_BOT_MISSING_PERMISSIONS.format(missing="Connect")
        )
