"""bwmon — terminal bandwidth monitor with live ASCII charts.

Each counter source is a CounterSource subclass registered in REGISTRY.
Importing bwmon.sources registers the built-in backends.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bwmon.sources import CounterSource

__version__ = "0.3.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

REGISTRY: dict[str, type[CounterSource]] = {}

# Short aliases → canonical backend name
ALIASES: dict[str, str] = {
    "proc": "procfs",
    "linux": "procfs",
    "ps": "psutil",
}


def register(cls: type[CounterSource]) -> type[CounterSource]:
    """Decorator that adds a counter source class to the global registry."""
    REGISTRY[cls.name] = cls
    return cls


def resolve_source(name: str) -> str:
    """Resolve a backend name, supporting aliases."""
    return ALIASES.get(name, name)
