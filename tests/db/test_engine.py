"""Engine start-up from a KernelConfig (split_kernel/db/engine.py)."""

import logging

import pytest

from split_kernel.config import KernelConfig
from split_kernel.db.engine import (
    create_tables,
    get_engine,
    init_engine_from_config,
    reset_engine,
    session_scope,
)
from split_kernel.db.immutability import unregister_immutability_listeners
from split_kernel.db.repository import LedgerRepository
from split_kernel.domain.ledger import Ledger
from split_kernel.logging_config import configure_logging, reset_logging
from tests.helpers import ALICE, BOB, expense


@pytest.fixture
def fresh_logging():
    """Unconfigured logging for the test, suite-wide setup restored afterwards."""
    reset_logging()
    yield
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def engine_cleanup():
    yield
    unregister_immutability_listeners()
    reset_engine()


class TestInitFromConfig:

    def test_database_url_used(self, tmp_path, engine_cleanup):
        path = tmp_path / "split.db"
        init_engine_from_config(KernelConfig(database_url=f"sqlite:///{path}"))

        assert get_engine().url.database == str(path)

    def test_log_level_applied(self, fresh_logging, engine_cleanup):
        init_engine_from_config(KernelConfig(log_level="error"))

        kernel_logger = logging.getLogger("split_kernel")
        assert kernel_logger.level == logging.ERROR
        assert not kernel_logger.propagate

    def test_existing_logging_setup_kept(self, engine_cleanup):
        init_engine_from_config(KernelConfig(log_level="CRITICAL"))

        assert logging.getLogger("split_kernel").level == logging.DEBUG

    def test_round_trip_through_configured_engine(self, tmp_path, engine_cleanup):
        init_engine_from_config(KernelConfig(database_url=f"sqlite:///{tmp_path / 'rt.db'}"))
        create_tables()
        ledger = Ledger("g1", [ALICE, BOB])
        tx = expense("e1", "alice", 500, ["alice", "bob"])

        with session_scope() as session:
            repo = LedgerRepository(session)
            repo.create_scope(ledger)
            repo.append(ledger, tx)

        with session_scope() as session:
            loaded = LedgerRepository(session).load("g1")

        assert loaded.all() == (tx,)
