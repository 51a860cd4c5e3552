"""File-backed configuration source for banners and global settings.

Layout under the configuration root::

    gacha_settings.json           global settings (broadcast, effects, banners)
    gacha_pools/<banner>.json     one document per banner

YAML documents (``.yaml``/``.yml``) are accepted wherever JSON is; JSON wins
when both exist.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .models import BannerConfig, Guarantees, RewardEntry, TicketDef
from .tiers import Tier, parse_tier

logger = logging.getLogger("gachabot.config")

SETTINGS_STEM = "gacha_settings"
POOLS_DIRNAME = "gacha_pools"
DOCUMENT_SUFFIXES: Tuple[str, ...] = (".json", ".yaml", ".yml")


class ConfigReadError(Exception):
    """Raised when a configuration document cannot be turned into usable data."""


class ConfigNotFound(ConfigReadError):
    """Raised when no readable document exists for the requested name."""


class ConfigMalformed(ConfigReadError):
    """Raised when a document decodes but lacks required sections."""


def _decode_document(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigNotFound(f"Unable to read {path}: {exc}") from exc
    try:
        if path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigMalformed(f"Failed to parse {path}: {exc}") from exc


def _find_document(directory: Path, stem: str) -> Optional[Path]:
    for suffix in DOCUMENT_SUFFIXES:
        candidate = directory / f"{stem}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def _coerce_count(value: Any) -> int:
    # Missing, zero, or unparsable counts grant a single item.
    try:
        count = int(value)
    except (TypeError, ValueError):
        return 1
    return count if count > 0 else 1


def _coerce_int(value: Any, context: str) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("%s is not an integer (%r); treating as 0.", context, value)
        return 0


def _parse_reward(raw: Any, context: str) -> Optional[RewardEntry]:
    if not isinstance(raw, Mapping):
        logger.warning("%s: skipping reward entry (expected object, got %s)", context, type(raw).__name__)
        return None
    item = str(raw.get("item") or "").strip()
    if not item:
        logger.warning("%s: skipping reward entry without an item id", context)
        return None

    lore_raw = raw.get("itemLore")
    lore: Tuple[str, ...] = ()
    if isinstance(lore_raw, list):
        lore = tuple(str(line) for line in lore_raw)

    nbt_raw = raw.get("nbt")
    nbt: Optional[str] = None
    if isinstance(nbt_raw, str):
        nbt = nbt_raw.strip() or None
    elif nbt_raw is not None:
        logger.warning("%s: ignoring non-string nbt payload for %s", context, item)

    item_name = raw.get("itemName")
    return RewardEntry(
        item=item,
        count=_coerce_count(raw.get("count")),
        name=str(raw.get("name") or "").strip(),
        item_name=str(item_name) if item_name else None,
        item_lore=lore,
        nbt=nbt,
    )


def _parse_rates(name: str, raw: Mapping[str, Any]) -> Dict[Tier, float]:
    rates: Dict[Tier, float] = {}
    for key, value in raw.items():
        try:
            tier = parse_tier(key)
            rates[tier] = float(value)
        except (TypeError, ValueError):
            logger.warning("Banner %s: ignoring invalid weight for rarity %s", name, key)
    return rates


def _parse_pools(name: str, raw: Mapping[str, Any]) -> Dict[Tier, Tuple[RewardEntry, ...]]:
    pools: Dict[Tier, Tuple[RewardEntry, ...]] = {}
    for key, entries in raw.items():
        try:
            tier = parse_tier(key)
        except ValueError:
            logger.warning("Banner %s: ignoring pool with an empty rarity label", name)
            continue
        if not isinstance(entries, list):
            logger.warning("Banner %s: pool %s must be a list; treating it as empty", name, key)
            pools[tier] = ()
            continue
        context = f"Banner {name} / {key}"
        parsed: List[RewardEntry] = []
        for raw_entry in entries:
            entry = _parse_reward(raw_entry, context)
            if entry is not None:
                parsed.append(entry)
        pools[tier] = tuple(parsed)
    return pools


def _parse_guarantees(name: str, raw: Any) -> Optional[Guarantees]:
    if not isinstance(raw, Mapping):
        return None
    min_rarity: Optional[Tier] = None
    floor = raw.get("minRarity")
    if floor:
        try:
            min_rarity = parse_tier(floor)
        except ValueError:
            logger.warning("Banner %s: ignoring empty minRarity", name)
    return Guarantees(
        min_rarity=min_rarity,
        min_ssr=_coerce_int(raw.get("minSSR"), f"Banner {name}: minSSR"),
        min_sr=_coerce_int(raw.get("minSR"), f"Banner {name}: minSR"),
    )


def _parse_ticket(raw: Any) -> Optional[TicketDef]:
    if not isinstance(raw, Mapping):
        return None
    kind = str(raw.get("type") or "").strip()
    if not kind:
        return None
    price = raw.get("price")
    price_item: Optional[str] = None
    price_count = 0
    if isinstance(price, Mapping):
        price_item = str(price.get("item") or "").strip() or None
        price_count = _coerce_int(price.get("count"), f"Ticket {kind}: price count")
    lore = raw.get("lore")
    return TicketDef(
        type=kind,
        name=str(raw.get("name") or kind),
        color=str(raw.get("color") or "white"),
        bold=bool(raw.get("bold", False)),
        lore=tuple(lore) if isinstance(lore, list) else (),
        price_item=price_item,
        price_count=price_count,
    )


def parse_banner(name: str, payload: Any) -> BannerConfig:
    """Build a :class:`BannerConfig` from a decoded banner document."""
    if not isinstance(payload, Mapping):
        raise ConfigMalformed(f"Banner {name} must be an object.")
    rates_raw = payload.get("rates")
    pools_raw = payload.get("pools")
    if not isinstance(rates_raw, Mapping):
        raise ConfigMalformed(f"Banner {name} is missing a 'rates' object.")
    if not isinstance(pools_raw, Mapping):
        raise ConfigMalformed(f"Banner {name} is missing a 'pools' object.")

    display_name = ""
    for key in ("_bannerName", "displayName", "display_name"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            display_name = value.strip()
            break

    tickets = payload.get("tickets")
    single_ticket = multi_ticket = None
    if isinstance(tickets, Mapping):
        single_ticket = _parse_ticket(tickets.get("single"))
        multi_ticket = _parse_ticket(tickets.get("multi"))

    return BannerConfig(
        name=name,
        display_name=display_name or name,
        rates=_parse_rates(name, rates_raw),
        pools=_parse_pools(name, pools_raw),
        guarantees=_parse_guarantees(name, payload.get("guarantees")),
        single_ticket=single_ticket,
        multi_ticket=multi_ticket,
    )


class FileConfigSource:
    """Reads banner and settings documents from a configuration directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    @property
    def pools_dir(self) -> Path:
        return self.root / POOLS_DIRNAME

    def banner_path(self, name: str) -> Optional[Path]:
        if not name or Path(name).name != name or name.startswith("."):
            return None
        return _find_document(self.pools_dir, name)

    def available_banners(self) -> List[str]:
        """List banner names that have a document on disk."""
        if not self.pools_dir.is_dir():
            return []
        names = {
            entry.stem
            for entry in self.pools_dir.iterdir()
            if entry.is_file() and entry.suffix in DOCUMENT_SUFFIXES
        }
        return sorted(names)

    def read_banner_config(self, name: str) -> BannerConfig:
        path = self.banner_path(name)
        if path is None:
            raise ConfigNotFound(f"No banner document for '{name}' under {self.pools_dir}")
        return parse_banner(name, _decode_document(path))

    def read_global_settings(self) -> Mapping[str, Any]:
        path = _find_document(self.root, SETTINGS_STEM)
        if path is None:
            raise ConfigNotFound(f"No {SETTINGS_STEM} document under {self.root}")
        payload = _decode_document(path)
        if not isinstance(payload, Mapping):
            raise ConfigMalformed(f"{path} must be an object.")
        return payload


__all__ = [
    "ConfigMalformed",
    "ConfigNotFound",
    "ConfigReadError",
    "FileConfigSource",
    "parse_banner",
]
