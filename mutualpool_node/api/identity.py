from __future__ import annotations

"""
Caller identity for the REST surface.

The pool core treats identities as opaque strings. Here the identity is
read from a request header (default `X-Caller-Id`, configurable through
`api.caller_header`). A real deployment puts a signer or session check in
front of this; the ledger never sees how the identity was established.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request

DEFAULT_CALLER_HEADER = "X-Caller-Id"


def current_caller_optional(request: Request) -> Optional[str]:
    header = getattr(request.app.state, "caller_header", DEFAULT_CALLER_HEADER)
    raw = request.headers.get(header, "")
    caller = raw.strip()
    return caller or None


def require_caller(caller: Optional[str] = Depends(current_caller_optional)) -> str:
    if not caller:
        raise HTTPException(status_code=401, detail="auth_required")
    return caller
