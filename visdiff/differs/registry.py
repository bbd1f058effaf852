"""Differ registry — maps differ names to factories."""

from __future__ import annotations

import logging
from typing import Callable

from visdiff.models.config import DiffConfig

from .base import Differ
from .different_pixels import DifferentPixelsDiffer
from .luminance import LuminanceDiffer

logger = logging.getLogger(__name__)

DifferFactory = Callable[[DiffConfig], Differ]

_FACTORIES: dict[str, DifferFactory] = {
    DifferentPixelsDiffer.name: lambda cfg: DifferentPixelsDiffer(threshold=cfg.pixel_threshold),
    LuminanceDiffer.name: lambda cfg: LuminanceDiffer(tolerance=cfg.luminance_tolerance),
}


def available_differs() -> list[str]:
    return sorted(_FACTORIES)


def register_differ(name: str, factory: DifferFactory) -> None:
    """Make a third-party differ selectable by name."""
    if name in _FACTORIES:
        logger.warning("Replacing registered differ '%s'", name)
    _FACTORIES[name] = factory


def create_differ(name: str, config: DiffConfig | None = None) -> Differ:
    try:
        factory = _FACTORIES[name]
    except KeyError:
        raise KeyError(
            f"Unknown differ '{name}'. Available: {', '.join(available_differs())}"
        ) from None
    return factory(config or DiffConfig())


def create_differs(names: list[str], config: DiffConfig | None = None) -> list[Differ]:
    """Instantiate differs in the given (registration) order."""
    config = config or DiffConfig()
    return [create_differ(name, config) for name in names]
