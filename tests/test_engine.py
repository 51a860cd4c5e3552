import random
import unittest

from gachabot.engine import (
    BATCH_SIZE,
    GachaEngine,
    PoolExhausted,
    draw_tier,
    select_for_tier,
    weight_shortfall,
)
from gachabot.models import BannerConfig, RewardEntry
from gachabot.tiers import CustomTier, FixedTier, parse_tier


def rate_table(raw):
    return {parse_tier(label): float(weight) for label, weight in raw.items()}


def reward(item):
    return RewardEntry(item=item, name=item)


class SequenceRandom(random.Random):
    def __init__(self, values):
        super().__init__(0)
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


class DrawTierTests(unittest.TestCase):
    def setUp(self) -> None:
        self.rates = rate_table({"SSR": 1, "SR": 9, "R": 30, "N": 60})

    def test_documented_boundaries(self) -> None:
        self.assertEqual(draw_tier(self.rates, 0.0), FixedTier.SSR)
        self.assertEqual(draw_tier(self.rates, 0.5), FixedTier.SSR)
        self.assertEqual(draw_tier(self.rates, 0.99), FixedTier.SSR)
        self.assertEqual(draw_tier(self.rates, 1.0), FixedTier.SR)
        self.assertEqual(draw_tier(self.rates, 9.999), FixedTier.SR)
        self.assertEqual(draw_tier(self.rates, 10.0), FixedTier.R)
        self.assertEqual(draw_tier(self.rates, 39.999), FixedTier.R)
        self.assertEqual(draw_tier(self.rates, 40.0), FixedTier.N)
        self.assertEqual(draw_tier(self.rates, 99.999), FixedTier.N)

    def test_sweep_is_monotonic_step_function(self) -> None:
        order = [FixedTier.SSR, FixedTier.SR, FixedTier.R, FixedTier.N]
        previous = 0
        for step in range(0, 10000):
            tier = draw_tier(self.rates, step / 100)
            position = order.index(tier)
            self.assertGreaterEqual(position, previous)
            previous = position

    def test_defaults_to_r_without_n(self) -> None:
        rates = rate_table({"SSR": 5, "SR": 15, "R": 30})
        self.assertEqual(draw_tier(rates, 49.9), FixedTier.R)
        self.assertEqual(draw_tier(rates, 50.0), FixedTier.R)
        self.assertEqual(draw_tier(rates, 99.0), FixedTier.R)

    def test_unclaimed_mass_falls_to_n_when_configured(self) -> None:
        rates = rate_table({"SSR": 5, "SR": 15, "R": 30, "N": 10})
        self.assertEqual(draw_tier(rates, 95.0), FixedTier.N)

    def test_missing_ssr_weight_starts_at_sr(self) -> None:
        rates = rate_table({"SR": 10, "R": 90})
        self.assertEqual(draw_tier(rates, 0.0), FixedTier.SR)
        self.assertEqual(draw_tier(rates, 10.0), FixedTier.R)

    def test_custom_tier_claims_range_after_fixed_tiers(self) -> None:
        rates = rate_table({"SSR": 1, "SR": 4, "R": 20, "N": 70, "UP": 5})
        self.assertEqual(draw_tier(rates, 94.999), FixedTier.N)
        self.assertEqual(draw_tier(rates, 95.0), CustomTier("UP"))
        self.assertEqual(draw_tier(rates, 99.999), CustomTier("UP"))

    def test_custom_tiers_follow_rate_table_order(self) -> None:
        rates = rate_table({"SSR": 1, "SR": 4, "R": 20, "N": 65, "UP": 5, "新春限定": 5})
        self.assertEqual(draw_tier(rates, 92.0), CustomTier("UP"))
        self.assertEqual(draw_tier(rates, 97.0), CustomTier("新春限定"))

    def test_custom_tier_is_dead_when_fixed_tiers_fill_the_range(self) -> None:
        rates = rate_table({"SSR": 1, "SR": 4, "R": 20, "N": 75, "UP": 5})
        for step in range(0, 10000):
            self.assertNotEqual(draw_tier(rates, step / 100), CustomTier("UP"))

    def test_weight_shortfall(self) -> None:
        self.assertEqual(weight_shortfall(self.rates), 0.0)
        self.assertEqual(weight_shortfall(rate_table({"SSR": 5, "R": 45})), 50.0)
        self.assertEqual(weight_shortfall(rate_table({"SSR": 50, "N": 70})), 0.0)


class SelectForTierTests(unittest.TestCase):
    def setUp(self) -> None:
        self.rng = random.Random(7)

    def test_empty_tier_pool_falls_back_to_r(self) -> None:
        pools = {FixedTier.SSR: (), FixedTier.R: (reward("iron"),), FixedTier.N: (reward("bread"),)}
        picked = select_for_tier(pools, FixedTier.SSR, self.rng)
        self.assertIsNotNone(picked)
        entry, tier = picked
        self.assertEqual(tier, FixedTier.R)
        self.assertEqual(entry.item, "iron")

    def test_absent_pool_falls_back_to_n_when_r_empty(self) -> None:
        pools = {FixedTier.R: (), FixedTier.N: (reward("bread"),)}
        entry, tier = select_for_tier(pools, CustomTier("UP"), self.rng)
        self.assertEqual(tier, FixedTier.N)
        self.assertEqual(entry.item, "bread")

    def test_all_pools_empty_reports_none(self) -> None:
        pools = {FixedTier.SSR: (reward("star"),), FixedTier.R: (), FixedTier.N: ()}
        self.assertIsNone(select_for_tier(pools, FixedTier.SR, self.rng))

    def test_selection_stays_inside_pool(self) -> None:
        pool = tuple(reward(f"item{i}") for i in range(5))
        seen = set()
        for _ in range(200):
            entry, tier = select_for_tier({FixedTier.R: pool}, FixedTier.R, self.rng)
            self.assertEqual(tier, FixedTier.R)
            seen.add(entry.item)
        self.assertEqual(seen, {entry.item for entry in pool})


class GachaEngineTests(unittest.TestCase):
    def _banner(self, **overrides) -> BannerConfig:
        values = dict(
            name="standard",
            display_name="Standard Banner",
            rates=rate_table({"SSR": 1, "SR": 9, "R": 30, "N": 60}),
            pools={
                FixedTier.SSR: (reward("netherite"),),
                FixedTier.SR: (reward("diamond"),),
                FixedTier.R: (reward("iron"),),
                FixedTier.N: (reward("bread"),),
            },
        )
        values.update(overrides)
        return BannerConfig(**values)

    def test_same_seed_reproduces_draws(self) -> None:
        banner = self._banner()
        first = [GachaEngine(seed=1234).draw_batch(banner) for _ in range(3)]
        second = [GachaEngine(seed=1234).draw_batch(banner) for _ in range(3)]
        self.assertEqual(first, second)

    def test_draw_single_tags_display_label(self) -> None:
        result = GachaEngine(seed=1).draw_single(self._banner())
        self.assertEqual(result.banner_name, "Standard Banner")

    def test_draw_single_reports_fallback_tier(self) -> None:
        banner = self._banner(
            rates=rate_table({"SSR": 100}),
            pools={FixedTier.R: (reward("iron"),)},
        )
        result = GachaEngine(seed=3).draw_single(banner)
        self.assertEqual(result.tier, FixedTier.R)
        self.assertEqual(result.reward.item, "iron")

    def test_pool_exhausted_raises(self) -> None:
        banner = self._banner(rates=rate_table({"SSR": 100}), pools={FixedTier.SSR: ()})
        with self.assertRaises(PoolExhausted) as ctx:
            GachaEngine(seed=3).draw_single(banner)
        self.assertEqual(ctx.exception.tier, FixedTier.SSR)

    def test_batch_has_ten_results(self) -> None:
        results = GachaEngine(seed=99).draw_batch(self._banner())
        self.assertEqual(len(results), BATCH_SIZE)

    def test_batch_aborts_when_any_draw_exhausts(self) -> None:
        banner = self._banner(
            rates=rate_table({"SSR": 50, "SR": 50}),
            pools={FixedTier.SSR: (reward("netherite"),)},
        )
        # Nine SSR draws (sample, pick) and then an SR sample with no pool behind it.
        rng = SequenceRandom([0.1, 0.0] * 9 + [0.9])
        with self.assertRaises(PoolExhausted) as ctx:
            GachaEngine(rng=rng).draw_batch(banner)
        self.assertEqual(ctx.exception.tier, FixedTier.SR)

    def test_shortfall_is_logged_once(self) -> None:
        banner = self._banner(rates=rate_table({"SSR": 10, "R": 40}))
        engine = GachaEngine(seed=2)
        with self.assertLogs("gachabot.engine", level="WARNING") as logs:
            engine.draw_single(banner)
            engine.draw_single(banner)
        shortfall_messages = [line for line in logs.output if "weights sum to" in line]
        self.assertEqual(len(shortfall_messages), 1)

    def test_shortfall_is_reported_again_after_reset(self) -> None:
        banner = self._banner(rates=rate_table({"SSR": 10, "R": 40}))
        engine = GachaEngine(seed=2)
        with self.assertLogs("gachabot.engine", level="WARNING") as logs:
            engine.draw_single(banner)
            engine.reset_weight_warnings()
            engine.draw_single(banner)
        shortfall_messages = [line for line in logs.output if "weights sum to" in line]
        self.assertEqual(len(shortfall_messages), 2)


if __name__ == "__main__":
    unittest.main()
