# mutualpool_node/__main__.py
"""
Entry point for running the pool node as a module:
    python -m mutualpool_node [--host 127.0.0.1] [--port 8000] [--admin ID]
                              [--funding-ceiling N] [--log-level INFO]
Every flag falls back to mutualpool_config.yaml / MUTUALPOOL_* env vars.
"""

from __future__ import annotations

import argparse
import os

import uvicorn

from .config import get_bind_host, get_bind_port, load_config
from .pool_api import create_app


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="mutualpool-node",
        description="Run the mutual-insurance pool ledger behind a REST API",
    )
    p.add_argument("--host", default=None, help="Bind address (default: from config)")
    p.add_argument("--port", type=int, default=None, help="HTTP port (default: from config)")
    p.add_argument("--admin", default=None, help="Administrator identity allowed to approve claims")
    p.add_argument(
        "--funding-ceiling",
        type=int,
        default=None,
        help="Largest premium a participant can fund",
    )
    p.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
    p.add_argument(
        "--config-dir",
        default=os.getcwd(),
        help="Directory holding mutualpool_config.yaml (default: cwd)",
    )
    return p.parse_args(argv)


def apply_args(cfg, args):
    if args.host:
        cfg["server"]["host"] = args.host
    if args.port is not None:
        cfg["server"]["port"] = args.port
    if args.admin:
        cfg["pool"]["administrator"] = args.admin
    if args.funding_ceiling is not None:
        cfg["pool"]["funding_ceiling"] = args.funding_ceiling
    if args.log_level:
        cfg["logging"]["level"] = args.log_level
    return cfg


def main(argv=None):
    args = parse_args(argv)
    cfg = apply_args(load_config(args.config_dir), args)
    app = create_app(cfg)
    uvicorn.run(app, host=get_bind_host(cfg), port=get_bind_port(cfg))


if __name__ == "__main__":
    main()
