"""Global gacha settings: broadcast eligibility and per-tier effects."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .config_source import ConfigReadError, FileConfigSource
from .tiers import FixedTier, Tier, is_custom

logger = logging.getLogger("gachabot.settings")

DEFAULT_BANNERS: Tuple[str, ...] = ("normal", "advanced", "legendary", "standard")
DEFAULT_PARTICLE_COUNT = 30


@dataclass(frozen=True)
class EffectSpec:
    sound: Optional[str] = None
    particle: Optional[str] = None
    particle_count: int = DEFAULT_PARTICLE_COUNT
    message: Optional[str] = None
    color: str = "gold"


@dataclass(frozen=True)
class GachaSettings:
    broadcast_enabled: bool = True
    broadcast_tiers: Tuple[str, ...] = ()
    effects: Mapping[str, EffectSpec] = field(default_factory=dict)
    banners: Optional[Tuple[str, ...]] = None

    def should_broadcast(self, tier: Tier) -> bool:
        return self.broadcast_enabled and tier.label in self.broadcast_tiers

    def effect_for(self, tier: Tier) -> Optional[EffectSpec]:
        """Return the effect for ``tier``; custom tiers borrow the SSR effect."""
        effect = self.effects.get(tier.label)
        if effect is None and is_custom(tier):
            effect = self.effects.get(FixedTier.SSR.label)
        return effect

    def active_banners(self) -> Tuple[str, ...]:
        if self.banners is not None:
            return self.banners
        logger.warning("No banners list in gacha settings; using defaults %s", ", ".join(DEFAULT_BANNERS))
        return DEFAULT_BANNERS


DEFAULT_SETTINGS = GachaSettings(
    broadcast_enabled=True,
    broadcast_tiers=("SSR", "UP", "新春限定"),
)


def _parse_effect(raw: Any) -> Optional[EffectSpec]:
    if not isinstance(raw, Mapping):
        return None
    try:
        particle_count = int(raw.get("particleCount", DEFAULT_PARTICLE_COUNT))
    except (TypeError, ValueError):
        particle_count = DEFAULT_PARTICLE_COUNT
    return EffectSpec(
        sound=raw.get("sound") or None,
        particle=raw.get("particle") or None,
        particle_count=particle_count or DEFAULT_PARTICLE_COUNT,
        message=raw.get("message") or None,
        color=str(raw.get("color") or "gold"),
    )


def parse_settings(payload: Mapping[str, Any]) -> GachaSettings:
    """Build settings from a decoded document; ``payload`` must carry ``broadcast``."""
    broadcast = payload.get("broadcast")
    if not isinstance(broadcast, Mapping):
        raise ValueError("gacha settings need a 'broadcast' object")

    tiers_raw = broadcast.get("rarities")
    broadcast_tiers: Tuple[str, ...] = ()
    if isinstance(tiers_raw, list):
        broadcast_tiers = tuple(str(item) for item in tiers_raw if str(item).strip())

    effects: Dict[str, EffectSpec] = {}
    effects_raw = payload.get("rarityEffects")
    if isinstance(effects_raw, Mapping):
        for label, raw in effects_raw.items():
            effect = _parse_effect(raw)
            if effect is None:
                logger.warning("Ignoring invalid effect entry for rarity %s", label)
                continue
            effects[str(label)] = effect

    banners: Optional[Tuple[str, ...]] = None
    banners_raw = payload.get("banners")
    if isinstance(banners_raw, list):
        banners = tuple(str(name).strip() for name in banners_raw if str(name).strip())

    return GachaSettings(
        broadcast_enabled=bool(broadcast.get("enabled", False)),
        broadcast_tiers=broadcast_tiers,
        effects=effects,
        banners=banners,
    )


def load_settings(source: FileConfigSource) -> GachaSettings:
    try:
        payload = source.read_global_settings()
        settings = parse_settings(payload)
    except (ConfigReadError, ValueError) as exc:
        logger.warning("Unable to read gacha settings (%s); using defaults.", exc)
        return DEFAULT_SETTINGS
    logger.info("Gacha settings loaded.")
    return settings


__all__ = [
    "DEFAULT_BANNERS",
    "DEFAULT_SETTINGS",
    "EffectSpec",
    "GachaSettings",
    "load_settings",
    "parse_settings",
]
