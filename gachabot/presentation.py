"""Chat text, embeds, and effect commands for draw results."""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import discord

from .models import DrawResult
from .settings import EffectSpec
from .tiers import FixedTier, Tier

# Minecraft chat colour names per tier label.
TIER_TEXT_COLORS: Dict[str, str] = {
    "SSR": "gold",
    "UP": "gold",
    "新春限定": "red",
    "SR": "light_purple",
    "R": "blue",
}
DEFAULT_TEXT_COLOR = "white"

# Custom tiers that rank with SSR when picking the batch highlight.
PREMIUM_LABELS = frozenset({"UP", "新春限定"})

MINECRAFT_COLOR_VALUES: Dict[str, int] = {
    "gold": 0xFFAA00,
    "red": 0xFF5555,
    "light_purple": 0xFF55FF,
    "blue": 0x5555FF,
    "white": 0xFFFFFF,
}


def tier_text_color(tier: Tier) -> str:
    return TIER_TEXT_COLORS.get(tier.label, DEFAULT_TEXT_COLOR)


def tier_embed_color(tier: Tier) -> int:
    return MINECRAFT_COLOR_VALUES.get(tier_text_color(tier), MINECRAFT_COLOR_VALUES[DEFAULT_TEXT_COLOR])


def is_premium(tier: Tier) -> bool:
    return tier == FixedTier.SSR or tier.label in PREMIUM_LABELS


def highest_tier(results: Iterable[DrawResult]) -> Optional[Tuple[Tier, DrawResult]]:
    """Pick the result that drives the batch effect.

    The last SSR-level result (SSR, UP or 新春限定) wins; failing that the
    first SR. Other custom tiers never take the highlight, so ``None`` means
    the batch holds nothing above R apart from such tiers.
    """
    best: Optional[Tuple[Tier, DrawResult]] = None
    for result in results:
        if is_premium(result.tier):
            best = (result.tier, result)
        elif best is None and result.tier == FixedTier.SR:
            best = (result.tier, result)
    return best


def batch_statistics(results: Sequence[DrawResult]) -> str:
    counts = Counter(result.tier.label for result in results)
    return " ".join(f"{count}{label}" for label, count in counts.items())


def result_line(index: int, result: DrawResult) -> str:
    return f"{index}. [{result.tier.label}] {result.reward.display_name}"


def single_result_embed(player: str, result: DrawResult) -> discord.Embed:
    embed = discord.Embed(
        title=f"✦ Congratulations! {result.tier.label} ✦",
        description=f"**{result.reward.display_name}**",
        colour=tier_embed_color(result.tier),
    )
    embed.set_footer(text=f"{player} · {result.banner_name}")
    return embed


def batch_result_embed(player: str, banner_label: str, results: Sequence[DrawResult]) -> discord.Embed:
    best = highest_tier(results)
    colour = tier_embed_color(best[0]) if best else tier_embed_color(FixedTier.R)
    lines = [result_line(index, result) for index, result in enumerate(results, start=1)]
    embed = discord.Embed(
        title=f"✦ {banner_label} - 10x Pull Results ✦",
        description="\n".join(lines),
        colour=colour,
    )
    embed.add_field(name="Stats", value=batch_statistics(results) or "-", inline=False)
    embed.set_footer(text=player)
    return embed


def broadcast_line(player: str, banner_label: str, result: DrawResult) -> str:
    return (
        f"★ **{player}** pulled **{result.tier.label}** - {result.reward.display_name}"
        f" from *{banner_label}* ★"
    )


def effect_commands(player: str, effect: Optional[EffectSpec]) -> List[str]:
    """Console commands that play ``effect`` at the player's position."""
    if effect is None:
        return []
    commands: List[str] = []
    if effect.sound:
        commands.append(f"execute as {player} at @s run playsound {effect.sound} player @s ~ ~ ~ 1 1")
    if effect.particle:
        commands.append(
            f"execute as {player} at @s run particle {effect.particle} ~ ~1 ~ 0.5 0.5 0.5 0.1 {effect.particle_count}"
        )
    return commands


def effect_message(effect: Optional[EffectSpec]) -> Optional[str]:
    if effect is None or not effect.message:
        return None
    return f"**{effect.message}**"


def banner_list_lines(entries: Sequence[Tuple[str, float]]) -> List[str]:
    if not entries:
        return ["No banners are loaded."]
    return [f"• {label} (SSR: {weight:g}%)" for label, weight in entries]


__all__ = [
    "banner_list_lines",
    "batch_result_embed",
    "batch_statistics",
    "broadcast_line",
    "effect_commands",
    "effect_message",
    "highest_tier",
    "PREMIUM_LABELS",
    "is_premium",
    "result_line",
    "single_result_embed",
    "tier_embed_color",
    "tier_text_color",
]
