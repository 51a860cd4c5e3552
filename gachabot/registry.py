"""Banner registry: cached banner configs and the ticket-kind index."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from .config_source import ConfigReadError, FileConfigSource
from .models import BannerConfig

logger = logging.getLogger("gachabot.registry")


def _index_tickets(tickets: Dict[str, str], banner: BannerConfig) -> None:
    for kind in banner.ticket_kinds():
        previous = tickets.get(kind)
        if previous is not None and previous != banner.name:
            logger.warning(
                "Ticket kind %s is declared by both %s and %s; using %s.",
                kind,
                previous,
                banner.name,
                banner.name,
            )
        tickets[kind] = banner.name


class BannerRegistry:
    """Owns loaded banners for the process lifetime, until :meth:`reload`.

    Readers always see either the previous or the new snapshot; ``reload``
    builds its replacement off to the side and swaps it in under the lock.
    """

    def __init__(self, source: FileConfigSource):
        self._source = source
        self._lock = threading.RLock()
        self._banners: Dict[str, BannerConfig] = {}
        self._tickets: Dict[str, str] = {}

    def _load(self, name: str) -> Optional[BannerConfig]:
        try:
            banner = self._source.read_banner_config(name)
        except ConfigReadError as exc:
            logger.warning("Unable to load banner %s: %s", name, exc)
            return None
        logger.info("Banner %s loaded.", name)
        return banner

    def resolve(self, name: str) -> Optional[BannerConfig]:
        """Return the cached banner, loading it on first use.

        Missing or malformed documents return ``None`` and are not cached,
        so a later call retries the load.
        """
        with self._lock:
            cached = self._banners.get(name)
        if cached is not None:
            return cached
        banner = self._load(name)
        if banner is None:
            return None
        with self._lock:
            existing = self._banners.get(name)
            if existing is not None:
                return existing
            self._banners[name] = banner
            _index_tickets(self._tickets, banner)
        return banner

    def reload(self, active_names: Sequence[str]) -> List[str]:
        """Replace every cached banner with a fresh load of ``active_names``.

        A banner that fails to load is logged and skipped; the rest of the
        list still loads. Returns the names that loaded, in order.
        """
        banners: Dict[str, BannerConfig] = {}
        tickets: Dict[str, str] = {}
        for name in active_names:
            if name in banners:
                continue
            banner = self._load(name)
            if banner is None:
                continue
            banners[name] = banner
            _index_tickets(tickets, banner)
        with self._lock:
            self._banners = banners
            self._tickets = tickets
        logger.info("Loaded banners: %s", ", ".join(banners) or "(none)")
        return list(banners)

    def ticket_owner(self, ticket_kind: str) -> Optional[str]:
        with self._lock:
            return self._tickets.get(ticket_kind)

    def rebuild_ticket_map(self) -> Dict[str, str]:
        """Rederive the ticket index from the cached banners."""
        with self._lock:
            tickets: Dict[str, str] = {}
            for banner in self._banners.values():
                _index_tickets(tickets, banner)
            self._tickets = tickets
            return dict(tickets)

    def banners(self) -> Tuple[BannerConfig, ...]:
        with self._lock:
            return tuple(self._banners.values())

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._banners

    def __len__(self) -> int:
        with self._lock:
            return len(self._banners)


__all__ = ["BannerRegistry"]
