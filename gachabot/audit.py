"""Static checks for banner configuration."""

from __future__ import annotations

from typing import Dict, List, Sequence

from .engine import SAMPLE_SCALE, weight_shortfall
from .models import BannerConfig
from .tiers import FIXED_DRAW_ORDER, FixedTier


def audit_banner(banner: BannerConfig) -> List[str]:
    """Return human-readable findings for one banner; empty when it looks sane."""
    findings: List[str] = []

    shortfall = weight_shortfall(banner.rates)
    if shortfall > 0:
        findings.append(
            f"weights sum to {SAMPLE_SCALE - shortfall:g}; {shortfall:g} falls through to the fixed-tier result"
        )
    total = sum(weight for weight in banner.rates.values() if weight > 0)
    if total > SAMPLE_SCALE:
        findings.append(f"weights sum to {total:g}; anything past {SAMPLE_SCALE:g} can never be drawn")

    for tier, weight in banner.rates.items():
        if weight < 0:
            findings.append(f"{tier.label} has a negative weight ({weight:g})")

    cumulative = sum(banner.rate(tier) for tier in FIXED_DRAW_ORDER)
    for tier in banner.custom_tiers():
        weight = banner.rate(tier)
        if weight > 0 and cumulative >= SAMPLE_SCALE:
            findings.append(f"custom tier {tier.label} starts at {cumulative:g} and is unreachable")
        cumulative += weight

    for tier, weight in banner.rates.items():
        if weight > 0 and not banner.pool(tier):
            findings.append(f"{tier.label} has weight {weight:g} but an empty pool; draws fall back to R/N")
    if not banner.pool(FixedTier.R) and not banner.pool(FixedTier.N):
        findings.append("both R and N pools are empty; an empty tier pool will abort the draw")

    rules = banner.guarantees
    if rules is not None:
        if rules.min_rarity is not None and not banner.pool(rules.min_rarity):
            findings.append(f"minRarity {rules.min_rarity.label} has an empty pool; the rule never fires")
        if rules.min_ssr > 0 and not banner.pool(FixedTier.SSR):
            findings.append("minSSR is set but the SSR pool is empty; the rule never fires")
        if rules.min_ssr > 1:
            findings.append(f"minSSR={rules.min_ssr} but a batch only ever forces one SSR")
        if rules.min_sr > 0 and not banner.pool(FixedTier.SR):
            findings.append("minSR is set but the SR pool is empty; the rule never fires")

    return findings


def duplicate_ticket_kinds(banners: Sequence[BannerConfig]) -> Dict[str, List[str]]:
    """Map each ticket kind declared by more than one banner to its owners, in load order."""
    owners: Dict[str, List[str]] = {}
    for banner in banners:
        for kind in banner.ticket_kinds():
            names = owners.setdefault(kind, [])
            if banner.name not in names:
                names.append(banner.name)
    return {kind: names for kind, names in owners.items() if len(names) > 1}


__all__ = ["audit_banner", "duplicate_ticket_kinds"]
