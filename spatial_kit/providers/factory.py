"""Geocoder factory: selects the active geocoder by name.

The factory keeps a registry of known adapters. New adapters are
registered with ``register_geocoder`` or by adding an entry to
``_register_builtin_adapters``.

Usage::

    from spatial_kit.providers.factory import get_geocoder

    geocoder = get_geocoder("census")
    result = geocoder.geocode(request)

When no name is given, ``ToolkitConfig.geocoder`` (``SPATIAL_GEOCODER``)
decides.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from spatial_kit.core.config import ToolkitConfig
from spatial_kit.providers.base import Geocoder, ProviderError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("spatial_kit.providers.factory")

# ---------------------------------------------------------------------------
# Geocoder name constants
# ---------------------------------------------------------------------------

CENSUS = "census"

# ---------------------------------------------------------------------------
# Lazy-import adapter registry
# ---------------------------------------------------------------------------

# Each entry maps a geocoder name to a callable returning the adapter
# *class*, so an adapter module is only imported once it is selected.

_ADAPTER_REGISTRY: dict[str, Callable[[], type[Geocoder]]] = {}


def _register_builtin_adapters() -> None:
    def _census() -> type[Geocoder]:
        from spatial_kit.providers.census_geocoder import CensusGeocoder

        return CensusGeocoder

    _ADAPTER_REGISTRY[CENSUS] = _census


def _ensure_registry() -> None:
    """Initialise the adapter registry once (idempotent)."""
    if not _ADAPTER_REGISTRY:
        _register_builtin_adapters()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_geocoder(
    name: str,
    loader: Callable[[], type[Geocoder]],
) -> None:
    """Register a custom geocoder adapter.

    Args:
        name: Geocoder name (e.g. ``"my_geocoder"``).
        loader: A zero-argument callable that returns the adapter class.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Geocoder name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _ADAPTER_REGISTRY[name] = loader
    logger.debug("Registered geocoder adapter: %s", name)


def get_geocoder(
    name: str | None = None,
    config: ToolkitConfig | None = None,
) -> Geocoder:
    """Create and return a geocoder instance.

    Args:
        name: Geocoder identifier. Defaults to ``config.geocoder``.
        config: Optional ``ToolkitConfig``; loaded from the environment
            when ``None``.

    Raises:
        ProviderError: If the named geocoder is not registered.
        ConfigValidationError: If the environment configuration is invalid.
    """
    _ensure_registry()
    if config is None:
        config = ToolkitConfig.from_env()
    name = name or config.geocoder

    loader = _ADAPTER_REGISTRY.get(name)
    if loader is None:
        available = ", ".join(sorted(_ADAPTER_REGISTRY))
        msg = f"Unknown geocoder: {name!r}. Available: {available}"
        raise ProviderError(provider=name, message=msg)

    adapter_cls = loader()
    logger.info("Creating geocoder: %s", name)
    return adapter_cls(config)


def list_geocoders() -> list[str]:
    """Return the names of all registered geocoder adapters."""
    _ensure_registry()
    return sorted(_ADAPTER_REGISTRY)
