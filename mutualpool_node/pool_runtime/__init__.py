# mutualpool_node/pool_runtime/__init__.py
from __future__ import annotations

"""
Pool runtime package (lazy import).

The ledger core has no third-party dependencies; keeping this initializer
free of import-time side effects lets tools and the API import submodules
without pulling in anything they do not use.

It provides lazy module attribute access via __getattr__ (PEP 562).
"""

from importlib import import_module
from typing import Any

__all__ = [
    "ledger",
    "ports",
    "results",
]

_LAZY_MAP = {
    "ledger": "mutualpool_node.pool_runtime.ledger",
    "ports": "mutualpool_node.pool_runtime.ports",
    "results": "mutualpool_node.pool_runtime.results",
}


def __getattr__(name: str) -> Any:
    mod_path = _LAZY_MAP.get(name)
    if not mod_path:
        raise AttributeError(name)
    return import_module(mod_path)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_MAP.keys()))
