"""Reward tier labels.

Banners always understand the four fixed tiers ``SSR``, ``SR``, ``R`` and
``N``. Any other label found in a banner's rate table (``UP``, a limited-time
event label, ...) is a custom tier; custom tiers are open-ended and carry no
ordering of their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class FixedTier(str, Enum):
    SSR = "SSR"
    SR = "SR"
    R = "R"
    N = "N"

    @property
    def label(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return _FIXED_RANK[self]

    def __str__(self) -> str:
        return self.value


_FIXED_RANK = {
    FixedTier.N: 0,
    FixedTier.R: 1,
    FixedTier.SR: 2,
    FixedTier.SSR: 3,
}

# Order in which the draw engine walks the fixed tiers.
FIXED_DRAW_ORDER = (FixedTier.SSR, FixedTier.SR, FixedTier.R, FixedTier.N)


@dataclass(frozen=True)
class CustomTier:
    label: str

    def __str__(self) -> str:
        return self.label


Tier = Union[FixedTier, CustomTier]


def parse_tier(label: object) -> Tier:
    """Map a configuration label onto a tier.

    Fixed labels are matched exactly; the configuration files are
    case-sensitive, so ``"ssr"`` is a custom tier.
    """
    text = str(label).strip()
    if not text:
        raise ValueError("Tier label must not be empty.")
    try:
        return FixedTier(text)
    except ValueError:
        return CustomTier(text)


def is_custom(tier: Tier) -> bool:
    return isinstance(tier, CustomTier)


def meets_floor(tier: Tier, floor: Tier) -> bool:
    """Return ``True`` when ``tier`` satisfies a minimum-rarity ``floor``.

    Fixed floors follow ``N < R < SR < SSR`` and custom tiers count as ``R``.
    A custom floor is only satisfied by that same label.
    """
    if isinstance(floor, CustomTier):
        return tier == floor
    rank = FixedTier.R.rank if isinstance(tier, CustomTier) else tier.rank
    return rank >= floor.rank


__all__ = [
    "CustomTier",
    "FIXED_DRAW_ORDER",
    "FixedTier",
    "Tier",
    "is_custom",
    "meets_floor",
    "parse_tier",
]
