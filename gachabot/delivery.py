"""Turn reward entries into Minecraft ``give`` commands."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .models import RewardEntry

logger = logging.getLogger("gachabot.delivery")

_ITEM_ID_RE = re.compile(r"^[a-z0-9_.\-]+(:[a-z0-9_./\-]+)?$")
_PLAYER_RE = re.compile(r"^[A-Za-z0-9_]{1,16}$")


class DeliveryError(Exception):
    """Raised when a reward cannot be expressed as a give command."""


@dataclass
class Delivery:
    commands: List[str] = field(default_factory=list)
    warning: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return bool(self.commands)


def is_valid_player_name(player: str) -> bool:
    """Return ``True`` for names the server console accepts as a command target."""
    return _PLAYER_RE.fullmatch(player) is not None


def _check_target(player: str, item: str) -> None:
    if not is_valid_player_name(player):

        raise DeliveryError(f"Invalid player name {player!r}")
    if not _ITEM_ID_RE.fullmatch(item):
        raise DeliveryError(f"Invalid item id {item!r}")


def _text_component(text: str, color: str, italic: bool) -> str:
    payload = json.dumps(
        {"text": text, "color": color, "italic": italic},
        ensure_ascii=False,
        separators=(",", ":"),
    )
    # Components are wrapped in single-quoted SNBT strings.
    return "'" + payload.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _display_compound(reward: RewardEntry) -> Optional[str]:
    parts: List[str] = []
    if reward.item_name:
        parts.append("Name:" + _text_component(reward.item_name, "yellow", False))
    if reward.item_lore:
        lore = ",".join(_text_component(line, "gray", True) for line in reward.item_lore)
        parts.append("Lore:[" + lore + "]")
    if not parts:
        return None
    return "display:{" + ",".join(parts) + "}"


def _strip_braces(nbt: str) -> str:
    content = nbt.strip()
    if content.startswith("{") and content.endswith("}"):
        content = content[1:-1]
    if content.count("{") != content.count("}") or content.count("[") != content.count("]"):
        raise DeliveryError(f"Unbalanced NBT payload {nbt!r}")
    return content.strip()


def build_item_tag(reward: RewardEntry) -> str:
    """Merge the raw NBT payload with display data; empty when neither exists."""
    parts: List[str] = []
    if reward.nbt:
        content = _strip_braces(reward.nbt)
        if content:
            parts.append(content)
    display = _display_compound(reward)
    if display:
        parts.append(display)
    if not parts:
        return ""
    return "{" + ",".join(parts) + "}"


def build_give_command(player: str, reward: RewardEntry) -> str:
    _check_target(player, reward.item)
    return f"give {player} {reward.item}{build_item_tag(reward)} {reward.count}"


def build_bare_give_command(player: str, reward: RewardEntry) -> str:
    _check_target(player, reward.item)
    return f"give {player} {reward.item} {reward.count}"


class RewardDelivery:
    """Builds the console commands that grant a reward to a player.

    A reward whose extra data or display text cannot be encoded is still
    granted as the bare item; the returned warning is meant for operators.
    """

    def commands_for(self, player: str, reward: RewardEntry) -> Delivery:
        try:
            return Delivery([build_give_command(player, reward)])
        except DeliveryError as exc:
            logger.error("Failed to build reward for %s (%s): %s", player, reward.item, exc)
            warning = f"Item data could not be applied; granted the plain item instead. Error: {exc}"
        try:
            return Delivery([build_bare_give_command(player, reward)], warning)
        except DeliveryError as exc:
            logger.error("Bare grant for %s (%s) failed as well: %s", player, reward.item, exc)
            return Delivery([], f"Reward {reward.item} could not be granted: {exc}")

    def commands_for_all(self, player: str, rewards: List[RewardEntry]) -> Tuple[List[str], List[str]]:
        commands: List[str] = []
        warnings: List[str] = []
        for reward in rewards:
            delivery = self.commands_for(player, reward)
            commands.extend(delivery.commands)
            if delivery.warning:
                warnings.append(delivery.warning)
        return commands, warnings


__all__ = [
    "Delivery",
    "DeliveryError",
    "RewardDelivery",
    "build_bare_give_command",
    "build_give_command",
    "build_item_tag",
    "is_valid_player_name",
]
