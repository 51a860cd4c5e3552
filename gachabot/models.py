"""Dataclasses and shared type definitions for gachabot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .tiers import CustomTier, Tier


@dataclass(frozen=True)
class RewardEntry:
    item: str
    count: int = 1
    name: str = ""
    item_name: Optional[str] = None
    item_lore: Tuple[str, ...] = field(default_factory=tuple)
    nbt: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.item


@dataclass(frozen=True)
class TicketDef:
    type: str
    name: str = ""
    color: str = "white"
    bold: bool = False
    lore: Tuple[object, ...] = field(default_factory=tuple)
    price_item: Optional[str] = None
    price_count: int = 0


@dataclass(frozen=True)
class Guarantees:
    min_rarity: Optional[Tier] = None
    min_ssr: int = 0
    min_sr: int = 0

    @property
    def is_empty(self) -> bool:
        return self.min_rarity is None and self.min_ssr <= 0 and self.min_sr <= 0


@dataclass(frozen=True)
class BannerConfig:
    name: str
    rates: Mapping[Tier, float]
    pools: Mapping[Tier, Tuple[RewardEntry, ...]]
    display_name: str = ""
    guarantees: Optional[Guarantees] = None
    single_ticket: Optional[TicketDef] = None
    multi_ticket: Optional[TicketDef] = None

    @property
    def label(self) -> str:
        return self.display_name or self.name

    def rate(self, tier: Tier) -> float:
        return float(self.rates.get(tier, 0.0))

    def pool(self, tier: Tier) -> Tuple[RewardEntry, ...]:
        return self.pools.get(tier, ())

    def custom_tiers(self) -> Tuple[CustomTier, ...]:
        return tuple(tier for tier in self.rates if isinstance(tier, CustomTier))

    def ticket_kinds(self) -> Tuple[str, ...]:
        kinds = []
        for ticket in (self.single_ticket, self.multi_ticket):
            if ticket is not None and ticket.type:
                kinds.append(ticket.type)
        return tuple(kinds)


@dataclass(frozen=True)
class DrawResult:
    tier: Tier
    reward: RewardEntry
    banner_name: str


__all__ = [
    "BannerConfig",
    "DrawResult",
    "Guarantees",
    "RewardEntry",
    "TicketDef",
]
