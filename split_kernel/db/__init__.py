"""
Persistence of a scope's members and transaction list (SQLAlchemy).

The domain never imports from here; this package only stores what the
domain has already validated.
"""

from split_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_config,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from split_kernel.db.repository import LedgerRepository

__all__ = [
    "LedgerRepository",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_config",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
