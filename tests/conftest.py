import pathlib
import sys

import pytest

# Ensure the repo root (containing the mutualpool_node package dir) is on sys.path.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mutualpool_node.pool_runtime.ledger import PoolLedger
from mutualpool_node.pool_runtime.ports import CeilingFundingOracle, ManualClock

ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"


@pytest.fixture
def admin():
    return ADMIN


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture(scope="function")
def ledger(clock):
    """Fresh ledger per test with the reference 1,000,000 funding ceiling."""
    return PoolLedger(ADMIN, funding=CeilingFundingOracle(1_000_000), clock=clock)


@pytest.fixture
def funded_claim(ledger):
    """
    user1 holds policy 0 (coverage 1,000,000, premium 50,000) and has a
    pending 30,000 claim 0 against it.
    """
    ledger.join("user1")
    ledger.create_policy("user1", 1_000_000, 50_000, 144)
    ledger.submit_claim("user1", 0, 30_000, "Minor damage")
    return ledger
