"""
Pytest fixtures for the ledger kernel test suite.

Provides:
- Structured-log capture
- A deterministic clock
- Ledger factories for pooled and reflective configurations
- In-memory SQLite sessions for the notification journal
"""

import json
import logging
from datetime import UTC, datetime
from io import StringIO
from typing import Callable, Generator

import pytest
from sqlalchemy.orm import Session

from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.db.immutability import register_immutability_listeners
from ledger_kernel.domain.authority import SingleKeyOwner
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.notifications import ListSink
from ledger_kernel.domain.values import DestinationKind, TaxComponent, TriggerParameters
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.services.reflection_service import ReflectionDesyncPolicy
from ledger_kernel.services.taxed_ledger import TaxedLedger

# Addresses used across the suite
OWNER = "0x00000000000000000000000000000000000000a0"
POOL = "0x00000000000000000000000000000000000000b0"
TREASURY = "0x00000000000000000000000000000000000000c0"
PRANK_FUND = "0x00000000000000000000000000000000000000c1"
ALICE = "0x0000000000000000000000000000000000000a11"
BOB = "0x0000000000000000000000000000000000000b0b"
CAROL = "0x0000000000000000000000000000000000000ca7"
MALLORY = "0x000000000000000000000000000000000000bad0"

SUPPLY = 1_000_000_000
FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


def pytest_configure(config):
    config.addinivalue_line("markers", "reflection: reflection accounting behaviour")
    config.addinivalue_line("markers", "trigger: trigger engine behaviour")
    config.addinivalue_line("markers", "db: requires the SQLite journal")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, pooled_ledger):
            pooled_ledger.transfer(OWNER, ALICE, 100)
            logs = captured_logs()
            assert any(r["message"] == "transfer_settled" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(FIXED_NOW)


# =============================================================================
# Ledger factories
# =============================================================================


def pooled_components() -> list[TaxComponent]:
    """treasury 80 / burn 40 / pool 30 bps."""
    return [
        TaxComponent("treasury", 80, DestinationKind.WALLET, TREASURY),
        TaxComponent("burn", 40, DestinationKind.UNSPENDABLE),
        TaxComponent("pool", 30, DestinationKind.SELF_POOL),
    ]


def reflective_components() -> list[TaxComponent]:
    """reflection 50 / prank fund 100 / burn 50 bps."""
    return [
        TaxComponent("reflection", 50, DestinationKind.REFLECTION_POOL),
        TaxComponent("prank_fund", 100, DestinationKind.WALLET, PRANK_FUND),
        TaxComponent("burn", 50, DestinationKind.UNSPENDABLE),
    ]


@pytest.fixture
def make_ledger(deterministic_clock) -> Callable[..., TaxedLedger]:
    """
    Factory for TaxedLedger instances.

    Defaults to the pooled component set; pass ``reflection=True`` to get
    the reflective set.
    """

    def _make(
        components: list[TaxComponent] | None = None,
        *,
        reflection: bool = False,
        supply: int = SUPPLY,
        trigger_parameters: TriggerParameters | None = None,
        desync_policy: ReflectionDesyncPolicy = ReflectionDesyncPolicy.ABSORB,
        **kwargs,
    ) -> TaxedLedger:
        if components is None:
            components = reflective_components() if reflection else pooled_components()
        return TaxedLedger(
            owner=SingleKeyOwner(OWNER),
            total_supply=supply,
            components=components,
            pool_address=POOL,
            clock=deterministic_clock,
            reflection=reflection,
            desync_policy=desync_policy,
            trigger_parameters=trigger_parameters,
            **kwargs,
        )

    return _make


@pytest.fixture
def pooled_ledger(make_ledger) -> TaxedLedger:
    return make_ledger()


@pytest.fixture
def reflective_ledger(make_ledger) -> TaxedLedger:
    return make_ledger(reflection=True)


@pytest.fixture
def list_sink() -> ListSink:
    return ListSink()


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite engine with the journal schema."""
    engine = init_engine_from_url("sqlite://")
    create_tables()
    register_immutability_listeners()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    s = get_session()
    try:
        yield s
    finally:
        s.rollback()
        s.close()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory()
