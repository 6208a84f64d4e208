"""Backends -- the session/statement/row collaborators the mapper drives.

Modules
-------
protocols       Session, Statement, RowSet protocols + OutParam
types           BackendType enum + BackendConfig
base            DBAPISession base class, cursor statement and row set
sqlite          SQLite session (stdlib, always available)
oracle          Oracle session (requires oracledb)

Guardrails:
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``connect()`` time with clear ``ConfigError``
"""

from .base import CursorRowSet, CursorStatement, DBAPISession
from .oracle import OracleSession
from .protocols import OutParam, RowSet, Session, Statement
from .sqlite import SQLiteSession, translate_binds
from .types import BackendConfig, BackendType

__all__ = [
    # Protocols
    "OutParam",
    "RowSet",
    "Session",
    "Statement",
    # Types
    "BackendConfig",
    "BackendType",
    # Base
    "CursorRowSet",
    "CursorStatement",
    "DBAPISession",
    # Implementations
    "SQLiteSession",
    "OracleSession",
    "translate_binds",
]
