"""
mutualpool_node/pool_runtime/ports.py
-------------------------------------

Capabilities the pool ledger consumes from the outside world.

- FundingOracle answers "can this identity fund `amount` units?" before a
  policy premium is accepted.
- Clock supplies the logical block / sequence marker stamped on new
  policies as their start marker.

The ledger only ever talks to these protocols, so tests (and real
deployments) swap implementations without touching ledger code.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Mapping, Optional, Protocol

# Reference ceiling used when no external balance source is wired in.
DEFAULT_FUNDING_CEILING: int = 1_000_000

# Same cadence the node uses for its block interval (10 minutes).
DEFAULT_BLOCK_INTERVAL_SECONDS: int = 600


class FundingOracle(Protocol):
    def has_funds(self, identity: str, amount: int) -> bool:
        ...


class Clock(Protocol):
    def current_marker(self) -> int:
        ...


# ---------------------------------------------------------------------------
# Funding oracles
# ---------------------------------------------------------------------------


class CeilingFundingOracle:
    """Every identity can fund up to a fixed ceiling."""

    def __init__(self, ceiling: int = DEFAULT_FUNDING_CEILING) -> None:
        self.ceiling = int(ceiling)

    def has_funds(self, identity: str, amount: int) -> bool:
        return int(amount) <= self.ceiling

    def __repr__(self) -> str:
        return f"CeilingFundingOracle(ceiling={self.ceiling})"


class BalanceSheetFundingOracle:
    """
    Read-only view over an external balance sheet.

    `balances` maps identity -> available units. Identities that are not
    listed have nothing available. The mapping is read on every call, so
    the owner can keep updating it after the oracle is constructed.
    """

    def __init__(self, balances: Mapping[str, int]) -> None:
        self._balances = balances

    def available(self, identity: str) -> int:
        return int(self._balances.get(identity, 0) or 0)

    def has_funds(self, identity: str, amount: int) -> bool:
        return self.available(identity) >= int(amount)


# ---------------------------------------------------------------------------
# Clocks
# ---------------------------------------------------------------------------


class FixedClock:
    def __init__(self, marker: int = 0) -> None:
        self.marker = int(marker)

    def current_marker(self) -> int:
        return self.marker

    def __repr__(self) -> str:
        return f"FixedClock(marker={self.marker})"


class ManualClock:
    """Block counter advanced explicitly by its owner (tests, simulations)."""

    def __init__(self, start: int = 0) -> None:
        self._marker = int(start)
        self._lock = threading.Lock()

    def current_marker(self) -> int:
        with self._lock:
            return self._marker

    def advance(self, blocks: int = 1) -> int:
        blocks = int(blocks)
        if blocks < 0:
            raise ValueError("clock cannot move backwards")
        with self._lock:
            self._marker += blocks
            return self._marker


class IntervalClock:
    """
    Block height derived from wall time.

    height = (now - genesis_ts) // block_interval_seconds, floored at 0.
    """

    def __init__(
        self,
        genesis_ts: Optional[float] = None,
        block_interval_seconds: int = DEFAULT_BLOCK_INTERVAL_SECONDS,
        now: Callable[[], float] = time.time,
    ) -> None:
        if int(block_interval_seconds) <= 0:
            raise ValueError("block_interval_seconds must be > 0")
        self._now = now
        self.genesis_ts = float(genesis_ts if genesis_ts is not None else now())
        self.block_interval_seconds = int(block_interval_seconds)

    def current_marker(self) -> int:
        elapsed = self._now() - self.genesis_ts
        if elapsed <= 0:
            return 0
        return int(elapsed // self.block_interval_seconds)


__all__ = [
    "DEFAULT_FUNDING_CEILING",
    "DEFAULT_BLOCK_INTERVAL_SECONDS",
    "FundingOracle",
    "Clock",
    "CeilingFundingOracle",
    "BalanceSheetFundingOracle",
    "FixedClock",
    "ManualClock",
    "IntervalClock",
]
