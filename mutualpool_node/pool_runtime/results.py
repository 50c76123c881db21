"""
mutualpool_node/pool_runtime/results.py
---------------------------------------

Result values returned by every PoolLedger operation.

Business-rule failures are never raised. Each call returns either

    Ok(value)   - the operation applied; value is its payload
    Err(error)  - nothing changed; error is a PoolError

so callers branch on the variant instead of catching exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, TypeVar, Union

T = TypeVar("T")


class PoolError(str, Enum):
    """Every way a ledger operation can refuse a call."""

    ALREADY_MEMBER = "already_member"
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_POLICY = "invalid_policy"
    OWNER_ONLY = "owner_only"
    NOT_FOUND = "not_found"
    ALREADY_APPROVED = "already_approved"
    INVALID_ARGUMENT = "invalid_argument"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> PoolError:
        raise ValueError(f"called unwrap_err() on Ok({self.value!r})")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "ok", "value": self.value}


@dataclass(frozen=True)
class Err:
    error: PoolError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise ValueError(f"called unwrap() on Err({self.error.value})")

    def unwrap_err(self) -> PoolError:
        return self.error

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "err", "value": self.error.value}


Result = Union[Ok[T], Err]

__all__ = ["PoolError", "Ok", "Err", "Result"]
