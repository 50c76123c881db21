"""
mutualpool_node/pool_runtime/ledger.py
--------------------------------------

Mutual-insurance pool ledger.

Participants join a shared fund, buy coverage policies whose premiums are
paid into the pool, and file claims against their own policies. A single
administrator approves claims, which pay out of the pool.

State owned by one PoolLedger instance:

- participants: set of identities
- policies: policy_id -> Policy
- claims: claim_id -> Claim
- pool balance, next policy id, next claim id
- events: append-only log of successful mutations

Production invariants:

- Every operation is all-or-nothing: validation and mutation run under one
  lock, and a refused call changes nothing (no id consumed, no event).
- The pool balance only grows by premiums and only shrinks by approved
  claims; approval is refused rather than letting it go negative.
- A claim moves pending -> approved exactly once.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Optional, Set

from .ports import CeilingFundingOracle, Clock, FixedClock, FundingOracle
from .results import Err, Ok, PoolError, Result

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Policy:
    id: int
    owner: str
    coverage_amount: int
    premium: int
    start_marker: int
    end_marker: int
    active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Claim:
    id: int
    policy_id: int
    amount: int
    description: str
    approved: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _is_units(value: Any) -> bool:
    # bool is an int subclass; True is not "1 unit"
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _is_identity(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _as_key(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


class PoolLedger:
    """
    Core pool state machine.

    Public entrypoints:

        join(caller)
        create_policy(caller, coverage_amount, premium, duration)
        submit_claim(caller, policy_id, amount, description)
        approve_claim(caller, claim_id)

    Each returns Ok(payload) or Err(PoolError) and never raises for a
    business-rule violation.
    """

    def __init__(
        self,
        administrator: str,
        funding: Optional[FundingOracle] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        if not _is_identity(administrator):
            raise ValueError("administrator identity is required")

        self.administrator = administrator
        self.funding: FundingOracle = funding or CeilingFundingOracle()
        self.clock: Clock = clock or FixedClock(0)

        self._lock = threading.RLock()
        self._participants: Set[str] = set()
        self._policies: Dict[int, Policy] = {}
        self._claims: Dict[int, Claim] = {}
        self._balance: int = 0
        self._next_policy_id: int = 0
        self._next_claim_id: int = 0
        self._events: List[Dict[str, Any]] = []

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _event(self, typ: str, caller: str, marker: int, data: Dict[str, Any]) -> None:
        # caller holds self._lock
        self._events.append(
            {
                "seq": len(self._events),
                "type": typ,
                "caller": caller,
                "marker": marker,
                "data": data,
            }
        )

    def _reject(self, op: str, caller: Any, error: PoolError) -> Err:
        log.debug("%s refused for %r: %s", op, caller, error.value)
        return Err(error)

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def join(self, caller: str) -> Result[bool]:
        """Add `caller` to the participant set. Joining twice is refused."""
        if not _is_identity(caller):
            return self._reject("join", caller, PoolError.INVALID_ARGUMENT)

        marker = self.clock.current_marker()
        with self._lock:
            if caller in self._participants:
                return self._reject("join", caller, PoolError.ALREADY_MEMBER)
            self._participants.add(caller)
            self._event("join", caller, marker, {})

        log.info("participant joined: %s", caller)
        return Ok(True)

    def create_policy(
        self,
        caller: str,
        coverage_amount: int,
        premium: int,
        duration: int,
    ) -> Result[int]:
        """
        Open a new active policy owned by `caller` and collect its premium
        into the pool.

        The funding oracle and clock are consulted before the lock is
        taken; neither depends on ledger state. Membership is still checked
        first, so a non-participant always sees UNAUTHORIZED.
        """
        if not _is_identity(caller):
            return self._reject("create_policy", caller, PoolError.INVALID_ARGUMENT)
        if not (_is_units(coverage_amount) and _is_units(premium) and _is_units(duration)):
            return self._reject("create_policy", caller, PoolError.INVALID_ARGUMENT)

        funded = bool(self.funding.has_funds(caller, premium))
        marker = self.clock.current_marker()

        with self._lock:
            if caller not in self._participants:
                return self._reject("create_policy", caller, PoolError.UNAUTHORIZED)
            if not funded:
                return self._reject("create_policy", caller, PoolError.INSUFFICIENT_FUNDS)

            policy_id = self._next_policy_id
            self._policies[policy_id] = Policy(
                id=policy_id,
                owner=caller,
                coverage_amount=coverage_amount,
                premium=premium,
                start_marker=marker,
                end_marker=duration,
                active=True,
            )
            self._next_policy_id += 1
            self._balance += premium
            self._event(
                "policy_created",
                caller,
                marker,
                {"policy_id": policy_id, "coverage_amount": coverage_amount, "premium": premium},
            )
            balance = self._balance

        log.info(
            "policy %s created for %s: coverage=%s premium=%s (pool=%s)",
            policy_id, caller, coverage_amount, premium, balance,
        )
        return Ok(policy_id)

    def submit_claim(
        self,
        caller: str,
        policy_id: int,
        amount: int,
        description: str,
    ) -> Result[int]:
        """
        File a pending claim against one of the caller's own policies.

        A missing policy and a policy owned by someone else are reported the
        same way (UNAUTHORIZED); the ledger does not distinguish "no such
        policy" from "not yours" on this path.
        """
        if not _is_identity(caller):
            return self._reject("submit_claim", caller, PoolError.INVALID_ARGUMENT)
        if not _is_units(amount) or not isinstance(description, str):
            return self._reject("submit_claim", caller, PoolError.INVALID_ARGUMENT)

        marker = self.clock.current_marker()
        key = _as_key(policy_id)

        with self._lock:
            policy = self._policies.get(key) if key is not None else None
            if policy is None or policy.owner != caller:
                return self._reject("submit_claim", caller, PoolError.UNAUTHORIZED)
            if not policy.active or amount > policy.coverage_amount:
                return self._reject("submit_claim", caller, PoolError.INVALID_POLICY)

            claim_id = self._next_claim_id
            self._claims[claim_id] = Claim(
                id=claim_id,
                policy_id=policy.id,
                amount=amount,
                description=description,
                approved=False,
            )
            self._next_claim_id += 1
            self._event(
                "claim_submitted",
                caller,
                marker,
                {"claim_id": claim_id, "policy_id": policy.id, "amount": amount},
            )

        log.info("claim %s submitted by %s on policy %s: amount=%s", claim_id, caller, policy.id, amount)
        return Ok(claim_id)

    def approve_claim(self, caller: str, claim_id: int) -> Result[bool]:
        """
        Pay a pending claim out of the pool. Administrator only.

        This is the only payout path and cannot be undone.
        """
        if caller != self.administrator:
            return self._reject("approve_claim", caller, PoolError.OWNER_ONLY)

        marker = self.clock.current_marker()
        key = _as_key(claim_id)

        with self._lock:
            claim = self._claims.get(key) if key is not None else None
            if claim is None:
                return self._reject("approve_claim", caller, PoolError.NOT_FOUND)
            if claim.approved:
                return self._reject("approve_claim", caller, PoolError.ALREADY_APPROVED)
            if claim.amount > self._balance:
                return self._reject("approve_claim", caller, PoolError.INSUFFICIENT_FUNDS)

            self._balance -= claim.amount
            self._claims[claim.id] = replace(claim, approved=True)
            self._event(
                "claim_approved",
                caller,
                marker,
                {"claim_id": claim.id, "policy_id": claim.policy_id, "amount": claim.amount},
            )
            balance = self._balance

        log.info("claim %s approved: paid %s (pool=%s)", claim.id, claim.amount, balance)
        return Ok(True)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def pool_balance(self) -> int:
        with self._lock:
            return self._balance

    @property
    def next_policy_id(self) -> int:
        with self._lock:
            return self._next_policy_id

    @property
    def next_claim_id(self) -> int:
        with self._lock:
            return self._next_claim_id

    def is_participant(self, identity: str) -> bool:
        with self._lock:
            return identity in self._participants

    def participants(self) -> List[str]:
        with self._lock:
            return sorted(self._participants)

    def get_policy(self, policy_id: int) -> Optional[Policy]:
        key = _as_key(policy_id)
        if key is None:
            return None
        with self._lock:
            return self._policies.get(key)

    def get_claim(self, claim_id: int) -> Optional[Claim]:
        key = _as_key(claim_id)
        if key is None:
            return None
        with self._lock:
            return self._claims.get(key)

    def list_policies(self, owner: Optional[str] = None) -> List[Policy]:
        with self._lock:
            items = [self._policies[k] for k in sorted(self._policies)]
        if owner is not None:
            items = [p for p in items if p.owner == owner]
        return items

    def list_claims(self, policy_id: Optional[int] = None, pending_only: bool = False) -> List[Claim]:
        with self._lock:
            items = [self._claims[k] for k in sorted(self._claims)]
        if policy_id is not None:
            items = [c for c in items if c.policy_id == policy_id]
        if pending_only:
            items = [c for c in items if not c.approved]
        return items

    def events(self, since: int = 0) -> List[Dict[str, Any]]:
        since = max(0, int(since))
        with self._lock:
            return [dict(e, data=dict(e["data"])) for e in self._events[since:]]

    def stats(self) -> Dict[str, int]:
        """Headline counters, read under one lock."""
        with self._lock:
            return {
                "pool_balance": self._balance,
                "participants": len(self._participants),
                "next_policy_id": self._next_policy_id,
                "next_claim_id": self._next_claim_id,
            }

    def snapshot(self) -> Dict[str, Any]:
        """JSON-friendly dump of the full ledger state, taken atomically."""
        with self._lock:
            return {
                "administrator": self.administrator,
                "pool_balance": self._balance,
                "next_policy_id": self._next_policy_id,
                "next_claim_id": self._next_claim_id,
                "participants": sorted(self._participants),
                "policies": {str(k): p.to_dict() for k, p in sorted(self._policies.items())},
                "claims": {str(k): c.to_dict() for k, c in sorted(self._claims.items())},
            }


__all__ = ["Policy", "Claim", "PoolLedger"]
