"""gachabot package providing the banner registry, draw engine, and bot surface."""

from . import audit, config_source, delivery, engine, models, presentation, registry, service, settings, tiers, utils  # noqa: F401

__all__ = [
    "audit",
    "config_source",
    "delivery",
    "engine",
    "models",
    "presentation",
    "registry",
    "service",
    "settings",
    "tiers",
    "utils",
]
