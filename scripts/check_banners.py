#!/usr/bin/env python
"""Validate gacha banner documents before deploying them."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from gachabot.audit import audit_banner, duplicate_ticket_kinds
from gachabot.config_source import ConfigReadError, FileConfigSource
from gachabot.models import BannerConfig
from gachabot.settings import load_settings

logger = logging.getLogger("check_banners")


def parse_args() -> argparse.Namespace:
    load_dotenv()
    parser = argparse.ArgumentParser(
        description="Load gacha banners the way the bot does and report configuration problems.",
    )
    parser.add_argument(
        "--config-root",
        type=Path,
        default=Path(os.getenv("GACHABOT_CONFIG_ROOT", "config")),
        help="Directory holding gacha_settings.json and gacha_pools/ (default: GACHABOT_CONFIG_ROOT or config).",
    )
    parser.add_argument(
        "--banner",
        action="append",
        default=[],
        help="Check only this banner (repeatable).",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Check every document in gacha_pools/ instead of the banners declared in the settings.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Increase logging verbosity.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")

    source = FileConfigSource(args.config_root)
    if args.banner:
        names = list(args.banner)
    elif args.all:
        names = source.available_banners()
    else:
        names = list(load_settings(source).active_banners())

    loaded: List[BannerConfig] = []
    failures = 0
    for name in names:
        try:
            banner = source.read_banner_config(name)
        except ConfigReadError as exc:
            logger.error("%s: %s", name, exc)
            failures += 1
            continue
        loaded.append(banner)
        findings = audit_banner(banner)
        if not findings:
            logger.info("%s: ok", name)
            continue
        for finding in findings:
            logger.warning("%s: %s", name, finding)

    for kind, owners in duplicate_ticket_kinds(loaded).items():
        logger.warning("ticket %s is declared by %s; %s wins", kind, ", ".join(owners), owners[-1])

    logger.info("Checked %d banner(s); %d failed to load.", len(names), failures)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
