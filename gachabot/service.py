"""Ticket-driven gacha service tying the registry, engine, and delivery together."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .config_source import FileConfigSource
from .delivery import RewardDelivery, is_valid_player_name
from .engine import BATCH_SIZE, BannerUnavailable, GachaEngine, GachaError
from .models import BannerConfig, DrawResult
from .presentation import effect_commands, highest_tier
from .registry import BannerRegistry
from .settings import DEFAULT_SETTINGS, EffectSpec, GachaSettings, load_settings
from .tiers import FixedTier
from .utils import optional_int_from_env, path_from_env

logger = logging.getLogger("gachabot.service")

MULTI_TICKET_SUFFIX = "_10"
DEFAULT_CONFIG_ROOT = Path("config")


class UnknownTicket(GachaError):
    """Raised when a ticket kind is not owned by any loaded banner."""

    def __init__(self, ticket_kind: str):
        super().__init__(f"Unknown gacha ticket type: {ticket_kind}")
        self.ticket_kind = ticket_kind


class PermissionDenied(GachaError):
    """Raised when a non-operator invokes an operator command."""


class InvalidPlayerName(GachaError):
    """Raised when a player name cannot be used as a console command target."""

    def __init__(self, player_name: str):
        super().__init__(f"'{player_name}' is not a valid Minecraft player name.")
        self.player_name = player_name


@dataclass(frozen=True)
class Player:
    name: str
    is_operator: bool = False


@dataclass
class PullReport:
    player: Player
    banner: BannerConfig
    results: List[DrawResult]
    is_batch: bool
    commands: List[str] = field(default_factory=list)
    broadcasts: List[DrawResult] = field(default_factory=list)
    effect: Optional[EffectSpec] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def banner_label(self) -> str:
        return self.banner.label


class GachaService:
    """Runs draws for ticket kinds and collects everything the host must emit."""

    def __init__(
        self,
        *,
        source: FileConfigSource,
        registry: Optional[BannerRegistry] = None,
        engine: Optional[GachaEngine] = None,
        delivery: Optional[RewardDelivery] = None,
        settings: Optional[GachaSettings] = None,
    ) -> None:
        self.source = source
        self.registry = registry if registry is not None else BannerRegistry(source)
        self.engine = engine if engine is not None else GachaEngine()
        self.delivery = delivery if delivery is not None else RewardDelivery()
        self.settings = settings if settings is not None else DEFAULT_SETTINGS

    @classmethod
    def from_environment(cls) -> "GachaService":
        root = path_from_env("GACHABOT_CONFIG_ROOT") or DEFAULT_CONFIG_ROOT
        seed = optional_int_from_env("GACHABOT_SEED")
        service = cls(source=FileConfigSource(root), engine=GachaEngine(seed=seed))
        service.load()
        return service

    def load(self) -> List[str]:
        """Read the global settings and (re)load every declared banner."""
        self.settings = load_settings(self.source)
        loaded = self.registry.reload(self.settings.active_banners())
        self.engine.reset_weight_warnings()
        logger.info("Gacha configuration ready with %d banner(s).", len(loaded))
        return loaded

    def reload(self, player: Player) -> List[str]:
        if not player.is_operator:
            raise PermissionDenied("You do not have permission to reload the gacha configuration.")
        logger.info("Gacha reload requested by %s.", player.name)
        return self.load()

    def list_banners(self) -> List[Tuple[str, float]]:
        return [(banner.label, banner.rate(FixedTier.SSR)) for banner in self.registry.banners()]

    def draw(self, banner_name: str, count: int = 1) -> List[DrawResult]:
        """Draw ``count`` (1 or 10) results from a banner by name."""
        if count not in (1, BATCH_SIZE):
            raise ValueError(f"Draw count must be 1 or {BATCH_SIZE}, got {count}.")
        banner = self.registry.resolve(banner_name)
        if banner is None:
            raise BannerUnavailable(banner_name)
        if count == BATCH_SIZE:
            return self.engine.draw_batch(banner)
        return [self.engine.draw_single(banner)]

    def use_ticket(self, player: Player, ticket_kind: str) -> PullReport:
        """Spend one ticket of ``ticket_kind`` for ``player``.

        Kinds ending in ``_10`` run a ten-draw batch. Raises
        :class:`InvalidPlayerName`, :class:`UnknownTicket`,
        :class:`BannerUnavailable`, or :class:`~gachabot.engine.PoolExhausted`;
        in those cases nothing is drawn or granted.
        """
        if not is_valid_player_name(player.name):
            raise InvalidPlayerName(player.name)
        banner_name = self.registry.ticket_owner(ticket_kind)
        if banner_name is None:
            raise UnknownTicket(ticket_kind)
        banner = self.registry.resolve(banner_name)
        if banner is None:
            raise BannerUnavailable(banner_name)

        is_batch = ticket_kind.endswith(MULTI_TICKET_SUFFIX)
        if is_batch:
            results = self.engine.draw_batch(banner)
        else:
            results = [self.engine.draw_single(banner)]

        commands, warnings = self.delivery.commands_for_all(player.name, [result.reward for result in results])

        if is_batch:
            best = highest_tier(results)
            effect = self.settings.effect_for(best[0] if best else FixedTier.R)
        else:
            effect = self.settings.effect_for(results[0].tier)
        commands.extend(effect_commands(player.name, effect))

        broadcasts = [result for result in results if self.settings.should_broadcast(result.tier)]
        for result in broadcasts:
            logger.info(
                "Broadcast: %s pulled %s - %s on %s",
                player.name,
                result.tier.label,
                result.reward.display_name,
                banner.label,
            )

        return PullReport(
            player=player,
            banner=banner,
            results=results,
            is_batch=is_batch,
            commands=commands,
            broadcasts=broadcasts,
            effect=effect,
            warnings=warnings if player.is_operator else [],
        )


__all__ = [
    "GachaService",
    "InvalidPlayerName",
    "MULTI_TICKET_SUFFIX",
    "PermissionDenied",
    "Player",
    "PullReport",
    "UnknownTicket",
]
