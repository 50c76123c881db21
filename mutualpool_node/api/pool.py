"""
API: /pool

REST surface over the PoolLedger held on `app.state.ledger`.

This is intentionally "thin": all rules live in
pool_runtime.ledger.PoolLedger. Routes resolve the caller, hand the
arguments to the ledger and translate Err(PoolError) results into
HTTPException with the error code as `detail`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from mutualpool_node.api.identity import require_caller
from mutualpool_node.pool_runtime.ledger import PoolLedger
from mutualpool_node.pool_runtime.results import Err, PoolError, Result

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pool", tags=["pool"])

ERROR_STATUS: Dict[PoolError, int] = {
    PoolError.ALREADY_MEMBER: 409,
    PoolError.UNAUTHORIZED: 403,
    PoolError.OWNER_ONLY: 403,
    PoolError.INSUFFICIENT_FUNDS: 409,
    PoolError.INVALID_POLICY: 422,
    PoolError.NOT_FOUND: 404,
    PoolError.ALREADY_APPROVED: 409,
    PoolError.INVALID_ARGUMENT: 400,
}


class PolicyCreate(BaseModel):
    coverage_amount: int = Field(..., ge=0, strict=True)
    premium: int = Field(..., ge=0, strict=True)
    duration: int = Field(..., ge=0, strict=True)


class ClaimCreate(BaseModel):
    # no lower bound: an unknown id is just another absent policy
    policy_id: int = Field(..., strict=True)
    amount: int = Field(..., ge=0, strict=True)
    description: str = ""


# -------------------------------------------------------------------
# Internal helpers
# -------------------------------------------------------------------


def get_ledger(request: Request) -> PoolLedger:
    """
    Return the ledger attached to the running app, or raise 503 if the
    app was built without one.
    """
    ledger = getattr(request.app.state, "ledger", None)
    if ledger is None:
        raise HTTPException(status_code=503, detail="pool_ledger_unavailable")
    return ledger


def _unwrap(op: str, caller: str, result: Result[Any]) -> Any:
    if isinstance(result, Err):
        logger.info("%s by %s failed: %s", op, caller, result.error.value)
        raise HTTPException(
            status_code=ERROR_STATUS.get(result.error, 400),
            detail=result.error.value,
        )
    return result.value


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------


@router.get("/status")
def pool_status(ledger: PoolLedger = Depends(get_ledger)) -> Dict[str, Any]:
    return {"ok": True, **ledger.stats()}


@router.post("/join")
def join_pool(
    caller: str = Depends(require_caller),
    ledger: PoolLedger = Depends(get_ledger),
) -> Dict[str, Any]:
    _unwrap("join", caller, ledger.join(caller))
    return {"ok": True}


@router.post("/policies")
def create_policy(
    payload: PolicyCreate,
    caller: str = Depends(require_caller),
    ledger: PoolLedger = Depends(get_ledger),
) -> Dict[str, Any]:
    policy_id = _unwrap(
        "create_policy",
        caller,
        ledger.create_policy(caller, payload.coverage_amount, payload.premium, payload.duration),
    )
    return {"ok": True, "policy_id": policy_id}


@router.get("/policies/{policy_id}")
def get_policy(policy_id: int, ledger: PoolLedger = Depends(get_ledger)) -> Dict[str, Any]:
    policy = ledger.get_policy(policy_id)
    if policy is None:
        raise HTTPException(status_code=404, detail="not_found")
    return {"ok": True, "policy": policy.to_dict()}


@router.post("/claims")
def submit_claim(
    payload: ClaimCreate,
    caller: str = Depends(require_caller),
    ledger: PoolLedger = Depends(get_ledger),
) -> Dict[str, Any]:
    claim_id = _unwrap(
        "submit_claim",
        caller,
        ledger.submit_claim(caller, payload.policy_id, payload.amount, payload.description),
    )
    return {"ok": True, "claim_id": claim_id}


@router.get("/claims/{claim_id}")
def get_claim(claim_id: int, ledger: PoolLedger = Depends(get_ledger)) -> Dict[str, Any]:
    claim = ledger.get_claim(claim_id)
    if claim is None:
        raise HTTPException(status_code=404, detail="not_found")
    return {"ok": True, "claim": claim.to_dict()}


@router.post("/claims/{claim_id}/approve")
def approve_claim(
    claim_id: int,
    caller: str = Depends(require_caller),
    ledger: PoolLedger = Depends(get_ledger),
) -> Dict[str, Any]:
    _unwrap("approve_claim", caller, ledger.approve_claim(caller, claim_id))
    return {"ok": True}


@router.get("/events")
def pool_events(
    since: int = Query(0, ge=0),
    ledger: PoolLedger = Depends(get_ledger),
) -> Dict[str, Any]:
    return {"ok": True, "events": ledger.events(since)}
