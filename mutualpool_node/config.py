# mutualpool_node/config.py
import copy
import logging
import os
from typing import Any, Dict

import yaml

from mutualpool_node.pool_runtime.ledger import PoolLedger
from mutualpool_node.pool_runtime.ports import (
    DEFAULT_BLOCK_INTERVAL_SECONDS,
    DEFAULT_FUNDING_CEILING,
    CeilingFundingOracle,
    Clock,
    FixedClock,
    IntervalClock,
)

CONFIG_FILENAME = "mutualpool_config.yaml"

# Administrator used by the reference pool when nothing is configured.
DEV_ADMINISTRATOR = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"

# -------- Defaults (non-secret) --------
_DEFAULT: Dict[str, Any] = {
    "pool": {
        "administrator": DEV_ADMINISTRATOR,
        "funding_ceiling": DEFAULT_FUNDING_CEILING,
    },
    "clock": {
        # "fixed": every policy starts at `marker`
        # "interval": block height derived from wall time
        "kind": "fixed",
        "marker": 0,
        "block_interval_seconds": DEFAULT_BLOCK_INTERVAL_SECONDS,
    },
    "logging": {"level": "INFO"},
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
    },
    "api": {"caller_header": "X-Caller-Id"},
}

# -------- ENV overrides --------
_ENV_MAP = {
    ("pool", "administrator"): ("MUTUALPOOL_ADMIN", str),
    ("pool", "funding_ceiling"): ("MUTUALPOOL_FUNDING_CEILING", int),
    ("clock", "kind"): ("MUTUALPOOL_CLOCK", str),
    ("clock", "block_interval_seconds"): ("MUTUALPOOL_BLOCK_INTERVAL_SECONDS", int),
    ("logging", "level"): ("MUTUALPOOL_LOG_LEVEL", str),
    ("server", "host"): ("MUTUALPOOL_HOST", str),
    ("server", "port"): ("MUTUALPOOL_PORT", int),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        try:
            casted = cast(val)
        except ValueError:
            logging.getLogger(__name__).warning(
                "ignoring %s=%r: expected %s", env_name, val, cast.__name__
            )
            continue
        cfg[section] = dict(cfg.get(section) or {})
        cfg[section][key] = casted
    return cfg


def load_config(repo_root: str) -> Dict[str, Any]:
    """
    Loads the YAML config from repo_root/mutualpool_config.yaml.
    Returns defaults if the file doesn't exist or can't be parsed.
    Also applies ENV overrides for the keys in _ENV_MAP.
    """
    path = os.path.join(repo_root, CONFIG_FILENAME)
    cfg = copy.deepcopy(_DEFAULT)

    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            if isinstance(data, dict):
                cfg = _deep_merge(cfg, data)
        except (OSError, yaml.YAMLError):
            logging.getLogger(__name__).warning("could not read %s, using defaults", path)

    return _apply_env_overrides(cfg)


def configure_logging(cfg: Dict[str, Any]) -> None:
    level_name = str(cfg.get("logging", {}).get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")
    logging.getLogger("mutualpool_node").setLevel(level)


# -------- Small helpers used by the app --------
def get_administrator(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("pool", {}).get("administrator") or DEV_ADMINISTRATOR)


def get_funding_ceiling(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("pool", {}).get("funding_ceiling", DEFAULT_FUNDING_CEILING))


def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("host", "127.0.0.1"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("server", {}).get("port", 8000))


def get_caller_header(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("api", {}).get("caller_header") or "X-Caller-Id")


def build_clock(cfg: Dict[str, Any]) -> Clock:
    section = cfg.get("clock", {}) or {}
    kind = str(section.get("kind", "fixed")).lower()
    if kind == "interval":
        return IntervalClock(
            block_interval_seconds=int(
                section.get("block_interval_seconds", DEFAULT_BLOCK_INTERVAL_SECONDS)
            )
        )
    if kind != "fixed":
        raise ValueError(f"unknown clock kind: {kind}")
    return FixedClock(int(section.get("marker", 0) or 0))


def build_ledger(cfg: Dict[str, Any]) -> PoolLedger:
    return PoolLedger(
        administrator=get_administrator(cfg),
        funding=CeilingFundingOracle(get_funding_ceiling(cfg)),
        clock=build_clock(cfg),
    )
