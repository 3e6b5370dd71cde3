"""Prefix-command music cog delegating to the playback controller."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from discord_jukebox.domain.shared.exceptions import DomainError
from discord_jukebox.domain.shared.messages import (
    DiscordUIMessages,
    ErrorMessages,
    LogTemplates,
)
from discord_jukebox.infrastructure.discord.guards.voice_guards import (
    ensure_voice_capability,
    get_member,
    member_voice_channel,
)
from discord_jukebox.utils.reply import format_duration, format_queue_lines, truncate

if TYPE_CHECKING:
    from ....application.services.playback_controller import PlaybackController
    from ....config.container import Container

logger = logging.getLogger(__name__)

QUEUE_PREVIEW_LINES = 10


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @property
    def controller(self) -> PlaybackController:
        return self.container.playback_controller

    async def cog_load(self) -> None:
        logger.info(LogTemplates.COG_LOADED_MUSIC)

    async def cog_command_error(self, ctx: commands.Context, error: Exception) -> None:
        command_name = getattr(ctx.command, "qualified_name", "<unknown>")
        guild_id = ctx.guild.id if ctx.guild else None

        if isinstance(error, commands.NoPrivateMessage):
            await ctx.reply(DiscordUIMessages.STATE_SERVER_ONLY, mention_author=False)
            return

        if isinstance(error, commands.MissingRequiredArgument):
            await ctx.reply(
                DiscordUIMessages.ERROR_MISSING_ARGUMENT.format(param_name=error.param.name),
                mention_author=False,
            )
            return

        original = getattr(error, "original", error)
        if isinstance(original, DomainError):
            logger.info(LogTemplates.COMMAND_REJECTED, command_name, guild_id, original.code)
            await ctx.reply(original.message, mention_author=False)
            return

        logger.exception(LogTemplates.COMMAND_FAILED, command_name, guild_id, exc_info=original)
        try:
            await ctx.reply(DiscordUIMessages.ERROR_COMMAND_FAILED_SEE_LOGS, mention_author=False)
        except discord.HTTPException:
            logger.warning(LogTemplates.NOTIFY_FAILED, ctx.channel.id)

    # ─────────────────────────────────────────────────────────────────
    # Playback
    # ─────────────────────────────────────────────────────────────────

    @commands.command(name="play", aliases=["p"], help="Play a song by URL or search query.")
    @commands.guild_only()
    async def play(self, ctx: commands.Context, *, query: str | None = None) -> None:
        member = await get_member(ctx)
        if member is None:
            return

        if not query or not query.strip():
            await ctx.reply(
                DiscordUIMessages.ERROR_QUERY_REQUIRED.format(prefix=ctx.clean_prefix),
                mention_author=False,
            )
            return

        channel = member_voice_channel(member)
        if channel is not None and not await ensure_voice_capability(ctx, channel):
            return

        # "Now playing" / "Added to queue" are posted by the notifier.
        async with ctx.typing():
            await self.controller.handle_play(
                member.guild.id,
                channel.id if channel is not None else None,
                ctx.channel.id,
                query.strip(),
                requested_by_id=member.id,
                requested_by_name=member.display_name,
            )

    @commands.command(name="skip", help="Skip the current song.")
    @commands.guild_only()
    async def skip(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        skipped = await self.controller.handle_skip(ctx.guild.id)
        await ctx.reply(
            DiscordUIMessages.ACTION_SKIPPED.format(title=truncate(skipped.title)),
            mention_author=False,
        )

    @commands.command(name="stop", aliases=["leave"], help="Stop playback and leave voice.")
    @commands.guild_only()
    async def stop(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        cleared = await self.controller.handle_stop(ctx.guild.id)
        await ctx.reply(DiscordUIMessages.ACTION_STOPPED.format(count=cleared), mention_author=False)

    @commands.command(name="pause", help="Pause the current song.")
    @commands.guild_only()
    async def pause(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        if await self.controller.handle_pause(ctx.guild.id):
            await ctx.reply(DiscordUIMessages.ACTION_PAUSED, mention_author=False)
        else:
            await ctx.reply(DiscordUIMessages.STATE_NOTHING_PLAYING_OR_PAUSED, mention_author=False)

    @commands.command(name="resume", help="Resume a paused song.")
    @commands.guild_only()
    async def resume(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        if await self.controller.handle_resume(ctx.guild.id):
            await ctx.reply(DiscordUIMessages.ACTION_RESUMED, mention_author=False)
        else:
            await ctx.reply(DiscordUIMessages.STATE_NOTHING_PAUSED, mention_author=False)

    # ─────────────────────────────────────────────────────────────────
    # Info
    # ─────────────────────────────────────────────────────────────────

    @commands.command(name="queue", aliases=["q"], help="Show the queue.")
    @commands.guild_only()
    async def queue(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        snapshot = await self.controller.handle_queue_query(ctx.guild.id)

        lines, hidden = format_queue_lines(snapshot.songs, QUEUE_PREVIEW_LINES)
        if hidden:
            lines.append(DiscordUIMessages.EMBED_QUEUE_MORE.format(count=hidden))

        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_QUEUE.format(total=snapshot.length),
            description="\n".join(lines),
            color=discord.Color.blurple(),
        )
        if snapshot.total_duration:
            embed.set_footer(text=f"Total duration: {format_duration(snapshot.total_duration)}")

        await ctx.reply(embed=embed, mention_author=False)

    @commands.command(name="now", aliases=["np", "nowplaying"], help="Show the current song.")
    @commands.guild_only()
    async def now(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        song = await self.controller.handle_now_playing(ctx.guild.id)

        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_NOW_PLAYING,
            description=f"**{truncate(song.title)}**",
            url=song.webpage_url,
            color=discord.Color.green(),
        )
        embed.add_field(name="Duration", value=format_duration(song.duration_seconds))
        if song.requested_by_name:
            embed.add_field(name="Requested by", value=song.requested_by_name)

        await ctx.reply(embed=embed, mention_author=False)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
