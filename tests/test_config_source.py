import json
import tempfile
import unittest
from pathlib import Path

from gachabot.config_source import (
    ConfigMalformed,
    ConfigNotFound,
    FileConfigSource,
    parse_banner,
)
from gachabot.tiers import CustomTier, FixedTier

BANNER_DOC = {
    "_bannerName": "Spring Festival",
    "rates": {"SSR": 2, "SR": 10, "R": 30, "N": 53, "UP": 5},
    "pools": {
        "UP": [{"item": "minecraft:beacon", "count": 1, "name": "Beacon"}],
        "SSR": [
            {
                "item": "minecraft:elytra",
                "count": "2",
                "name": "Elytra",
                "itemName": "Wings",
                "itemLore": ["line one", "line two"],
                "nbt": "{Unbreakable:1b}",
            }
        ],
        "SR": [],
        "R": [{"item": "minecraft:iron_ingot", "count": 0}],
    },
    "guarantees": {"minRarity": "R", "minSSR": 1, "minSR": "2"},
    "tickets": {
        "single": {"type": "spring_1", "name": "Spring Ticket", "price": {"item": "minecraft:emerald", "count": 8}},
        "multi": {"type": "spring_10", "bold": True, "lore": ["ten pulls"]},
    },
}


class ParseBannerTests(unittest.TestCase):
    def test_parses_full_document(self) -> None:
        banner = parse_banner("spring", BANNER_DOC)
        self.assertEqual(banner.name, "spring")
        self.assertEqual(banner.label, "Spring Festival")
        self.assertEqual(list(banner.rates), [FixedTier.SSR, FixedTier.SR, FixedTier.R, FixedTier.N, CustomTier("UP")])
        self.assertEqual(banner.rate(CustomTier("UP")), 5.0)
        self.assertEqual(banner.custom_tiers(), (CustomTier("UP"),))
        self.assertEqual(banner.pool(FixedTier.SR), ())
        self.assertEqual(banner.pool(FixedTier.N), ())

        elytra = banner.pool(FixedTier.SSR)[0]
        self.assertEqual(elytra.count, 2)
        self.assertEqual(elytra.item_name, "Wings")
        self.assertEqual(elytra.item_lore, ("line one", "line two"))
        self.assertEqual(elytra.nbt, "{Unbreakable:1b}")

        iron = banner.pool(FixedTier.R)[0]
        self.assertEqual(iron.count, 1)
        self.assertEqual(iron.display_name, "minecraft:iron_ingot")

        self.assertEqual(banner.guarantees.min_rarity, FixedTier.R)
        self.assertEqual(banner.guarantees.min_ssr, 1)
        self.assertEqual(banner.guarantees.min_sr, 2)

        self.assertEqual(banner.ticket_kinds(), ("spring_1", "spring_10"))
        self.assertEqual(banner.single_ticket.price_item, "minecraft:emerald")
        self.assertEqual(banner.single_ticket.price_count, 8)
        self.assertTrue(banner.multi_ticket.bold)

    def test_display_name_falls_back_to_name(self) -> None:
        banner = parse_banner("plain", {"rates": {"R": 100}, "pools": {"R": []}})
        self.assertEqual(banner.label, "plain")
        self.assertIsNone(banner.guarantees)
        self.assertEqual(banner.ticket_kinds(), ())

    def test_missing_rates_or_pools_is_malformed(self) -> None:
        with self.assertRaises(ConfigMalformed):
            parse_banner("broken", {"pools": {}})
        with self.assertRaises(ConfigMalformed):
            parse_banner("broken", {"rates": {"R": 100}})
        with self.assertRaises(ConfigMalformed):
            parse_banner("broken", ["not", "an", "object"])

    def test_invalid_entries_are_skipped(self) -> None:
        doc = {
            "rates": {"SSR": "lots", "R": 100},
            "pools": {"R": [{"count": 3}, "junk", {"item": "minecraft:stone"}]},
        }
        with self.assertLogs("gachabot.config", level="WARNING"):
            banner = parse_banner("messy", doc)
        self.assertNotIn(FixedTier.SSR, banner.rates)
        self.assertEqual([entry.item for entry in banner.pool(FixedTier.R)], ["minecraft:stone"])


class FileConfigSourceTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        (self.root / "gacha_pools").mkdir()
        self.source = FileConfigSource(self.root)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, relative: str, text: str) -> None:
        (self.root / relative).write_text(text, encoding="utf-8")

    def test_reads_json_banner(self) -> None:
        self._write("gacha_pools/spring.json", json.dumps(BANNER_DOC))
        banner = self.source.read_banner_config("spring")
        self.assertEqual(banner.label, "Spring Festival")

    def test_reads_yaml_banner(self) -> None:
        self._write(
            "gacha_pools/yaml_banner.yml",
            "rates:\n  SSR: 5\n  R: 95\npools:\n  R:\n    - item: minecraft:stone\n      count: 4\n",
        )
        banner = self.source.read_banner_config("yaml_banner")
        self.assertEqual(banner.rate(FixedTier.SSR), 5.0)
        self.assertEqual(banner.pool(FixedTier.R)[0].count, 4)

    def test_missing_banner_raises_not_found(self) -> None:
        with self.assertRaises(ConfigNotFound):
            self.source.read_banner_config("nope")

    def test_path_like_names_are_not_found(self) -> None:
        with self.assertRaises(ConfigNotFound):
            self.source.read_banner_config("../gacha_settings")

    def test_undecodable_banner_is_malformed(self) -> None:
        self._write("gacha_pools/bad.json", "{not json")
        with self.assertRaises(ConfigMalformed):
            self.source.read_banner_config("bad")

    def test_available_banners_lists_documents(self) -> None:
        self._write("gacha_pools/a.json", "{}")
        self._write("gacha_pools/b.yaml", "{}")
        self._write("gacha_pools/notes.txt", "ignored")
        self.assertEqual(self.source.available_banners(), ["a", "b"])

    def test_reads_global_settings(self) -> None:
        self._write("gacha_settings.json", json.dumps({"broadcast": {"enabled": True}}))
        self.assertEqual(self.source.read_global_settings()["broadcast"], {"enabled": True})

    def test_missing_settings_raises_not_found(self) -> None:
        with self.assertRaises(ConfigNotFound):
            self.source.read_global_settings()


if __name__ == "__main__":
    unittest.main()
