"""Discord command surface for the gacha service."""

from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, Optional, Set

import discord
from discord.ext import commands

from .engine import BannerUnavailable, PoolExhausted
from .presentation import (
    banner_list_lines,
    batch_result_embed,
    broadcast_line,
    effect_message,
    single_result_embed,
)
from .service import GachaService, InvalidPlayerName, PermissionDenied, Player, PullReport, UnknownTicket
from .utils import is_admin, optional_int_from_env, parse_channel_ids

logger = logging.getLogger("gachabot.commands")

# Discord rejects messages above 2000 characters.
MESSAGE_CHAR_LIMIT = 1900


def _chunk_lines(lines: Iterable[str], *, limit: int = MESSAGE_CHAR_LIMIT) -> list[str]:
    buckets: list[str] = []
    current: list[str] = []
    current_len = 0
    for line in lines:
        if current_len + len(line) + 1 > limit and current:
            buckets.append("\n".join(current))
            current = []
            current_len = 0
        current.append(line)
        current_len += len(line) + 1
    if current:
        buckets.append("\n".join(current))
    return buckets


class GachaCommands:
    """Registers the pull and operator commands on a bot."""

    def __init__(
        self,
        *,
        bot: commands.Bot,
        service: GachaService,
        console_channel_id: Optional[int] = None,
        broadcast_channel_id: Optional[int] = None,
        allowed_channel_ids: Optional[Set[int]] = None,
    ) -> None:
        self.bot = bot
        self.service = service
        self.console_channel_id = console_channel_id
        self.broadcast_channel_id = broadcast_channel_id
        self.allowed_channel_ids = set(allowed_channel_ids or ())
        self._channel_cache: Dict[int, discord.abc.Messageable] = {}

    # Channel plumbing -------------------------------------------------

    async def _ensure_channel(self, channel_id: Optional[int]) -> Optional[discord.abc.Messageable]:
        if not channel_id:
            return None
        cached = self._channel_cache.get(channel_id)
        if cached is not None:
            return cached
        candidate = self.bot.get_channel(channel_id)
        if isinstance(candidate, discord.abc.Messageable):
            self._channel_cache[channel_id] = candidate
            return candidate
        try:
            fetched = await self.bot.fetch_channel(channel_id)
        except discord.HTTPException as exc:
            logger.warning("Unable to fetch channel %s: %s", channel_id, exc)
            return None
        if isinstance(fetched, discord.abc.Messageable):
            self._channel_cache[channel_id] = fetched
            return fetched
        return None

    def _validate_channel(self, ctx: commands.Context) -> bool:
        if not self.allowed_channel_ids:
            return True
        return ctx.channel.id in self.allowed_channel_ids

    def _player_for(self, ctx: commands.Context, player_name: str) -> Player:
        operator = is_admin(ctx.author)
        # Only admins may pull on behalf of another in-game name.
        name = player_name.strip() if operator else ""
        if not name:
            name = getattr(ctx.author, "display_name", ctx.author.name)
        return Player(name=name, is_operator=operator)

    async def _run_console_commands(self, report: PullReport) -> bool:
        if not report.commands:
            return True
        console = await self._ensure_channel(self.console_channel_id)
        if console is None:
            logger.error(
                "No console channel configured; dropping %d command(s) for %s.",
                len(report.commands),
                report.player.name,
            )
            return False
        for command in report.commands:
            try:
                await console.send(command)
            except discord.HTTPException as exc:
                logger.error("Failed to relay console command %r: %s", command, exc)
                return False
        return True

    async def _announce(self, ctx: commands.Context, report: PullReport) -> None:
        if not report.broadcasts:
            return
        channel = await self._ensure_channel(self.broadcast_channel_id) or ctx.channel
        for result in report.broadcasts:
            try:
                await channel.send(broadcast_line(report.player.name, report.banner_label, result))
            except discord.HTTPException as exc:
                logger.warning("Broadcast failed for %s: %s", report.player.name, exc)

    # Commands ---------------------------------------------------------

    def _register_command(self, command: commands.Command) -> None:
        existing = self.bot.get_command(command.name)
        if existing:
            self.bot.remove_command(existing.name)
        self.bot.add_command(command)

    def register_commands(self) -> None:
        @commands.command(name="pull")
        async def gacha_pull(ctx: commands.Context, ticket_kind: str = "", *, player_name: str = "") -> None:
            await self.command_pull(ctx, ticket_kind.strip(), player_name)

        @commands.command(name="gacha_reload")
        async def gacha_reload(ctx: commands.Context) -> None:
            await self.command_reload(ctx)

        @commands.command(name="gacha_list")
        async def gacha_list(ctx: commands.Context) -> None:
            await self.command_list(ctx)

        @commands.command(name="gacha_help")
        async def gacha_help(ctx: commands.Context) -> None:
            await self.command_help(ctx)

        self._register_command(gacha_pull)
        self._register_command(gacha_reload)
        self._register_command(gacha_list)
        self._register_command(gacha_help)

    async def command_help(self, ctx: commands.Context) -> None:
        prefix = ctx.prefix or "!"
        lines = [
            "**Gacha Commands**",
            f"- `{prefix}pull <ticket> [player]` - Spend a ticket; tickets ending in `_10` pull ten at once.",
            f"- `{prefix}gacha_list` - List loaded banners and their SSR rate.",
            f"- `{prefix}gacha_reload` - (Admins) Reload gacha settings and banners.",
        ]
        await ctx.send("\n".join(lines))

    async def command_pull(self, ctx: commands.Context, ticket_kind: str, player_name: str) -> None:
        if not ticket_kind:
            await ctx.reply("Usage: `!pull <ticket> [player]`", mention_author=False)
            return
        if not self._validate_channel(ctx):
            await ctx.reply("Pulls are not allowed in this channel.", mention_author=False)
            return

        player = self._player_for(ctx, player_name)
        try:
            report = self.service.use_ticket(player, ticket_kind)
        except InvalidPlayerName as exc:
            await ctx.reply(
                f"`{exc.player_name}` is not a Minecraft player name. Set your server nickname to your in-game name.",
                mention_author=False,
            )
            return
        except UnknownTicket:
            await ctx.reply(f"Unknown gacha ticket type: `{ticket_kind}`", mention_author=False)
            return
        except BannerUnavailable as exc:
            await ctx.reply(f"Banner not found: `{exc.banner_name}`", mention_author=False)
            return
        except PoolExhausted as exc:
            await ctx.reply(f"Reward pool is empty: {exc.banner_name} / {exc.tier.label}", mention_author=False)
            return

        if not await self._run_console_commands(report):
            await ctx.reply(
                "The rewards could not be sent to the server. Please contact an admin.",
                mention_author=False,
            )

        if report.is_batch:
            embed = batch_result_embed(player.name, report.banner_label, report.results)
        else:
            embed = single_result_embed(player.name, report.results[0])
        await ctx.send(embed=embed)

        extra = effect_message(report.effect)
        if extra:
            await ctx.send(extra)
        for warning in report.warnings:
            await ctx.reply(warning, mention_author=False)

        await self._announce(ctx, report)

    async def command_reload(self, ctx: commands.Context) -> None:
        player = self._player_for(ctx, "")
        try:
            loaded = self.service.reload(player)
        except PermissionDenied:
            await ctx.reply("❌ You do not have permission to run this command!", mention_author=False)
            return
        await ctx.reply(
            "Gacha configuration reloaded.\nLoaded banners: " + (", ".join(loaded) or "(none)"),
            mention_author=False,
        )

    async def command_list(self, ctx: commands.Context) -> None:
        lines = ["**Loaded banners**"]
        lines.extend(banner_list_lines(self.service.list_banners()))
        for chunk in _chunk_lines(lines):
            await ctx.send(chunk)


def setup_gacha_commands(bot: commands.Bot, *, service: Optional[GachaService] = None) -> GachaCommands:
    """Factory used by bot.py to wire the gacha commands."""
    manager = GachaCommands(
        bot=bot,
        service=service or GachaService.from_environment(),
        console_channel_id=optional_int_from_env("GACHABOT_CONSOLE_CHANNEL_ID"),
        broadcast_channel_id=optional_int_from_env("GACHABOT_BROADCAST_CHANNEL_ID"),
        allowed_channel_ids=parse_channel_ids(os.getenv("GACHABOT_CHANNEL_IDS", "")),
    )
    manager.register_commands()
    return manager


__all__ = ["GachaCommands", "setup_gacha_commands"]
