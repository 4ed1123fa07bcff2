"""
Pytest fixtures for the split kernel test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- Deterministic clock and a recorder with sequential transaction ids
- A three-member ledger (alice, bob, carol)
- In-memory SQLite sessions for the persistence tests

Builders for transactions live in tests/helpers.py.
"""

import json
import logging
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from split_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from split_kernel.domain.clock import DeterministicClock
from split_kernel.domain.ledger import Ledger, MemberPolicy
from split_kernel.domain.transactions import Member
from split_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from split_kernel.services.recorder import SettlementRecorder
from tests.helpers import ALICE, BOB, CAROL, T0, SequentialIds


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
    Capture split_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, recorder, ledger):
            recorder.record_reminder(ledger, "bob", "alice")
            logs = captured_logs()
            assert any(r["message"] == "reminder_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("split_kernel")
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
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(T0)


@pytest.fixture
def recorder(clock) -> SettlementRecorder:
    return SettlementRecorder(clock=clock, id_factory=SequentialIds("rec"))


@pytest.fixture
def members() -> tuple[Member, ...]:
    return (ALICE, BOB, CAROL)


@pytest.fixture
def ledger(members) -> Ledger:
    """Empty STRICT ledger for scope g1 with alice, bob and carol."""
    return Ledger("g1", members)


@pytest.fixture
def open_ledger() -> Ledger:
    """Empty AUTO_REGISTER ledger with no members."""
    return Ledger("g-open", member_policy=MemberPolicy.AUTO_REGISTER)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database with tables and immutability guards."""
    engine = init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    session = get_session()
    yield session
    session.rollback()
    session.close()
