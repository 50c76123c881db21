from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI

from mutualpool_node.api import pool
from mutualpool_node.config import build_ledger, configure_logging, get_caller_header, load_config
from mutualpool_node.pool_runtime.ledger import PoolLedger

log = logging.getLogger(__name__)


def create_app(
    cfg: Optional[Dict[str, Any]] = None,
    ledger: Optional[PoolLedger] = None,
) -> FastAPI:
    """
    Build the pool API around one ledger instance.

    The ledger lives on app.state.ledger for the lifetime of the app; pass
    one in to share it with other code (tests do this), otherwise it is
    built from config.
    """
    if cfg is None:
        cfg = load_config(os.getcwd())
    configure_logging(cfg)

    app = FastAPI(title="Mutual Pool Node API")
    app.state.config = cfg
    app.state.caller_header = get_caller_header(cfg)
    app.state.ledger = ledger if ledger is not None else build_ledger(cfg)

    log.info("pool ledger ready (administrator=%s)", app.state.ledger.administrator)

    # Routers
    app.include_router(pool.router)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app
