"""Draw engine: weighted tier sampling, reward selection, and ten-draw pity."""

from __future__ import annotations

import logging
import random
from typing import List, Mapping, MutableSequence, Optional, Sequence, Set, Tuple

from .models import BannerConfig, DrawResult, Guarantees, RewardEntry
from .tiers import CustomTier, FixedTier, Tier, meets_floor

logger = logging.getLogger("gachabot.engine")
_draw_logger = logging.getLogger("gachabot.engine.draws")

BATCH_SIZE = 10
PITY_SLOT = BATCH_SIZE - 1
SAMPLE_SCALE = 100.0


class GachaError(Exception):
    """Base class for draw failures reported back to the caller."""


class BannerUnavailable(GachaError):
    """Raised when a banner cannot be resolved from the registry."""

    def __init__(self, banner_name: str):
        super().__init__(f"Banner '{banner_name}' is not available.")
        self.banner_name = banner_name


class PoolExhausted(GachaError):
    """Raised when a tier's pool and both fallback pools are empty."""

    def __init__(self, banner_name: str, tier: Tier):
        super().__init__(f"Reward pool is empty: {banner_name} / {tier.label}")
        self.banner_name = banner_name
        self.tier = tier


def draw_tier(rates: Mapping[Tier, float], sample: float) -> Tier:
    """Map a sample in ``[0, 100)`` onto a tier.

    Fixed tiers claim cumulative ranges in the order SSR, SR, R. Anything past
    them is N when N has weight, otherwise R. Custom tiers then claim the
    ranges that follow ``SSR + SR + R + N``, in rate-table order, and override
    the fixed result when the sample lands inside one. Weights are not
    normalised; unclaimed mass keeps the fixed-tier result.
    """
    ssr = rates.get(FixedTier.SSR, 0.0)
    sr = rates.get(FixedTier.SR, 0.0)
    r = rates.get(FixedTier.R, 0.0)
    n = rates.get(FixedTier.N, 0.0)

    tier: Tier
    if ssr and sample < ssr:
        tier = FixedTier.SSR
    elif sr and sample < ssr + sr:
        tier = FixedTier.SR
    elif r and sample < ssr + sr + r:
        tier = FixedTier.R
    elif n > 0:
        tier = FixedTier.N
    else:
        tier = FixedTier.R

    cumulative = ssr + sr + r + n
    for label, weight in rates.items():
        if not isinstance(label, CustomTier):
            continue
        threshold = cumulative + weight
        if cumulative <= sample < threshold:
            return label
        cumulative = threshold
    return tier


def weight_shortfall(rates: Mapping[Tier, float]) -> float:
    """Return how far the positive weights fall short of 100 (0 when they don't)."""
    total = sum(weight for weight in rates.values() if weight > 0)
    return max(0.0, SAMPLE_SCALE - total)


def select_reward(pool: Sequence[RewardEntry], rng: random.Random) -> RewardEntry:
    return pool[int(rng.random() * len(pool))]


def select_for_tier(
    pools: Mapping[Tier, Sequence[RewardEntry]],
    tier: Tier,
    rng: random.Random,
) -> Optional[Tuple[RewardEntry, Tier]]:
    """Pick a reward for ``tier``, falling back to the R pool and then the N pool.

    Returns the reward and the tier it was actually drawn from, or ``None``
    when all three pools are empty.
    """
    for candidate in (tier, FixedTier.R, FixedTier.N):
        pool = pools.get(candidate)
        if pool:
            return select_reward(pool, rng), candidate
    return None


def _count(results: Sequence[DrawResult], tier: Tier) -> int:
    return sum(1 for result in results if result.tier == tier)


def apply_guarantees(
    results: MutableSequence[DrawResult],
    banner: BannerConfig,
    rng: random.Random,
    guarantees: Optional[Guarantees] = None,
) -> List[int]:
    """Rewrite a ten-draw batch in place so it honours the banner's guarantees.

    Rules run in a fixed order and may overwrite each other's writes:

    1. ``minRarity``: if nothing meets the floor, slot 9 becomes a pick from
       the floor's pool.
    2. ``minSSR``: if the batch has fewer SSRs than required, slot 9 becomes
       an SSR pick. Only one slot is written, whatever the deficit.
    3. ``minSR``: slots 8 down to 0 that hold N or R become SR picks until the
       count is met or the scan runs out.

    A rule whose pool is empty does nothing. Returns the indices rewritten.
    """
    if len(results) != BATCH_SIZE:
        raise ValueError(f"Guarantees apply to batches of {BATCH_SIZE}, got {len(results)}.")
    rules = guarantees if guarantees is not None else banner.guarantees
    if rules is None or rules.is_empty:
        return []

    label = banner.label
    touched: Set[int] = set()

    if rules.min_rarity is not None:
        floor = rules.min_rarity
        if not any(meets_floor(result.tier, floor) for result in results):
            pool = banner.pool(floor)
            if pool:
                results[PITY_SLOT] = DrawResult(floor, select_reward(pool, rng), label)
                touched.add(PITY_SLOT)
                _draw_logger.debug("Pity %s: slot %s rewritten to %s", label, PITY_SLOT, floor.label)

    if rules.min_ssr > 0 and _count(results, FixedTier.SSR) < rules.min_ssr:
        pool = banner.pool(FixedTier.SSR)
        if pool:
            results[PITY_SLOT] = DrawResult(FixedTier.SSR, select_reward(pool, rng), label)
            touched.add(PITY_SLOT)
            _draw_logger.debug("Pity %s: slot %s rewritten to SSR", label, PITY_SLOT)

    if rules.min_sr > 0:
        sr_count = _count(results, FixedTier.SR)
        pool = banner.pool(FixedTier.SR)
        if sr_count < rules.min_sr and pool:
            for index in range(PITY_SLOT - 1, -1, -1):
                if sr_count >= rules.min_sr:
                    break
                if results[index].tier in (FixedTier.N, FixedTier.R):
                    results[index] = DrawResult(FixedTier.SR, select_reward(pool, rng), label)
                    touched.add(index)
                    sr_count += 1
                    _draw_logger.debug("Pity %s: slot %s rewritten to SR", label, index)

    return sorted(touched)


class GachaEngine:
    """Draws tiers and rewards for banners.

    The engine keeps no streak or session memory; the only state it carries
    is its random stream, so two engines built with the same seed draw the
    same results.
    """

    def __init__(self, *, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        self.rng = rng if rng is not None else random.Random(seed)
        self._warned_banners: Set[str] = set()

    def reset_weight_warnings(self) -> None:
        """Let the next draw from each banner report its weight shortfall again."""
        self._warned_banners.clear()

    def sample(self) -> float:
        return self.rng.random() * SAMPLE_SCALE

    def _check_weights(self, banner: BannerConfig) -> None:
        if banner.name in self._warned_banners:
            return
        self._warned_banners.add(banner.name)
        shortfall = weight_shortfall(banner.rates)
        if shortfall > 0:
            logger.warning(
                "Banner %s weights sum to %.3f; the remaining %.3f falls through to the fixed-tier result.",
                banner.name,
                SAMPLE_SCALE - shortfall,
                shortfall,
            )

    def draw_single(self, banner: BannerConfig) -> DrawResult:
        self._check_weights(banner)
        sample = self.sample()
        tier = draw_tier(banner.rates, sample)
        picked = select_for_tier(banner.pools, tier, self.rng)
        if picked is None:
            raise PoolExhausted(banner.label, tier)
        reward, effective = picked
        _draw_logger.debug(
            "Draw %s: sample=%.4f tier=%s effective=%s reward=%s",
            banner.name,
            sample,
            tier.label,
            effective.label,
            reward.item,
        )
        return DrawResult(effective, reward, banner.label)

    def draw_batch(self, banner: BannerConfig) -> List[DrawResult]:
        """Draw ten results and apply the banner's guarantees.

        If any draw exhausts the pools, the whole batch is abandoned and
        :class:`PoolExhausted` propagates; nothing from it is issued.
        """
        results = [self.draw_single(banner) for _ in range(BATCH_SIZE)]
        apply_guarantees(results, banner, self.rng)
        return results


__all__ = [
    "BATCH_SIZE",
    "BannerUnavailable",
    "GachaEngine",
    "GachaError",
    "PITY_SLOT",
    "PoolExhausted",
    "SAMPLE_SCALE",
    "apply_guarantees",
    "draw_tier",
    "select_for_tier",
    "select_reward",
    "weight_shortfall",
]
