"""Tests for the DB-API sessions (SQLite, plus Oracle with a fake driver cursor)."""

from __future__ import annotations

import datetime
import sys
from types import SimpleNamespace

import pytest

from tagorm.backend import (
    BackendConfig,
    BackendType,
    CursorRowSet,
    OracleSession,
    OutParam,
    RowSet,
    Session,
    SQLiteSession,
    Statement,
    translate_binds,
)
from tagorm.errors import BackendError, ConfigError
from tagorm.types import ColumnType


class TestTranslateBinds:
    def test_numbered(self):
        assert translate_binds("INSERT INTO T (A, B) VALUES (:1, :2)") == (
            "INSERT INTO T (A, B) VALUES (?, ?)"
        )

    def test_named(self):
        assert translate_binds("DELETE FROM T WHERE ID = :WHERE_VAL") == "DELETE FROM T WHERE ID = ?"

    def test_returning_into_dropped(self):
        assert translate_binds("INSERT INTO T (A) VALUES (:1) RETURNING ID INTO :RET_VAL") == (
            "INSERT INTO T (A) VALUES (?) RETURNING ID"
        )

    def test_quoted_text_untouched(self):
        sql = "SELECT A FROM T WHERE B = ':1' AND C = \"x:y\" AND D = :1"
        assert translate_binds(sql) == "SELECT A FROM T WHERE B = ':1' AND C = \"x:y\" AND D = ?"

    def test_time_literal_untouched(self):
        assert translate_binds("SELECT '12:30' FROM T") == "SELECT '12:30' FROM T"


class TestSQLiteSession:
    def test_satisfies_protocols(self, sqlite_session):
        assert isinstance(sqlite_session, Session)
        stmt = sqlite_session.prepare("SELECT 1")
        assert isinstance(stmt, Statement)
        assert isinstance(stmt.query(), RowSet)
        stmt.close()

    def test_lazy_connect_and_close(self):
        session = SQLiteSession()
        assert not session.is_connected
        assert session.connection is not None
        assert session.backend_type is BackendType.SQLITE
        session.close()
        assert not session.is_connected

    def test_returning_fills_out_param(self, sqlite_session):
        out = OutParam(ColumnType.INT64)
        stmt = sqlite_session.prepare(
            "INSERT INTO ITEM (NAME, OWNERID) VALUES (:1, :2) RETURNING ID INTO :RET_VAL"
        )
        try:
            assert stmt.execute("widget", 7, out) == 1
        finally:
            stmt.close()
        assert out.value == 1

    def test_prepare_and_execute_rowcount(self, sqlite_session):
        sqlite_session.prepare_and_execute(
            "INSERT INTO ITEM (NAME, OWNERID) VALUES (:1, :2)", "a", 1
        )
        assert sqlite_session.prepare_and_execute("DELETE FROM ITEM WHERE OWNERID = :WHERE_VAL", 1) == 1

    def test_update(self, sqlite_session):
        sqlite_session.prepare_and_execute("INSERT INTO ITEM (NAME, OWNERID) VALUES (:1, :2)", "a", 1)
        sqlite_session.update("ITEM", [("NAME", "b"), ("OWNERID", 2), ("ID", 1)])
        rows = sqlite_session.connection.execute("SELECT NAME, OWNERID FROM ITEM").fetchall()
        assert rows == [("b", 2)]

    def test_update_needs_a_column(self, sqlite_session):
        with pytest.raises(BackendError):
            sqlite_session.update("ITEM", [("ID", 1)])

    def test_query_binds_datetimes_as_text(self, sqlite_session):
        sqlite_session.execute_script("CREATE TABLE T (AT TEXT)")
        moment = datetime.datetime(2024, 5, 6, 7, 8, 9)
        sqlite_session.prepare_and_execute("INSERT INTO T (AT) VALUES (:1)", moment)
        stmt = sqlite_session.prepare("SELECT AT FROM T WHERE AT = :1", ColumnType.TIME)
        rows = stmt.query(moment)
        assert rows.next()
        assert rows.current_row() == ("2024-05-06 07:08:09",)
        assert not rows.next()
        stmt.close()

    def test_current_row_before_next(self, sqlite_session):
        stmt = sqlite_session.prepare("SELECT 1")
        with pytest.raises(BackendError, match="next"):
            stmt.query().current_row()
        stmt.close()

    def test_driver_errors_propagate(self, sqlite_session):
        import sqlite3

        with pytest.raises(sqlite3.OperationalError):
            sqlite_session.prepare_and_execute("INSERT INTO MISSING (A) VALUES (:1)", 1)


class _FakeVar:
    def __init__(self, value):
        self._value = value

    def getvalue(self):
        return self._value


class _FakeOracleCursor:
    rowcount = 1
    arraysize = 100

    def __init__(self):
        self.var_types = []
        self.executed = None

    def var(self, python_type, arraysize=None):
        self.var_types.append(python_type)
        return _FakeVar([99])

    def execute(self, sql, binds):
        self.executed = (sql, binds)

    def close(self):
        pass


class _FakeOracleConnection:
    def __init__(self, cursor):
        self._cursor = cursor

    def cursor(self):
        return self._cursor


@pytest.fixture
def fake_oracledb(monkeypatch):
    module = SimpleNamespace(
        DB_TYPE_CLOB="CLOB",
        DB_TYPE_NCLOB="NCLOB",
        DB_TYPE_BLOB="BLOB",
        DB_TYPE_NUMBER="NUMBER",
        DB_TYPE_LONG="LONG",
        DB_TYPE_LONG_NVARCHAR="LONG_NVARCHAR",
        DB_TYPE_LONG_RAW="LONG_RAW",
    )
    monkeypatch.setitem(sys.modules, "oracledb", module)
    return module


class TestOracleSession:
    def test_connection_string(self):
        session = OracleSession(host="db", port=1522, database="ORCL", username="u", password="p")
        assert session.backend_type is BackendType.ORACLE
        assert session._config.to_connection_string() == "db:1522/ORCL"

    def test_missing_driver(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "oracledb", None)
        with pytest.raises(ConfigError, match="oracledb"):
            OracleSession(database="ORCL").connect()

    def test_out_param_becomes_cursor_var(self):
        cursor = _FakeOracleCursor()
        out = OutParam(ColumnType.INT64)
        sql = "INSERT INTO ITEM (NAME, OK) VALUES (:1, :2) RETURNING ID INTO :RET_VAL"
        assert OracleSession().run(cursor, sql, ["widget", True, out]) == 1
        assert cursor.var_types == [int]
        assert cursor.executed[1][:2] == ["widget", 1]
        assert out.value == 99

    def test_query_fetches_lobs_inline(self, fake_oracledb):
        cursor = _FakeOracleCursor()
        session = OracleSession()
        session._conn = _FakeOracleConnection(cursor)
        stmt = session.prepare(
            "SELECT NOTE, DATA, ID FROM DOC",
            ColumnType.NULLABLE_STRING,
            ColumnType.BINARY,
            ColumnType.INT64,
        )
        stmt.query()

        handler = cursor.outputtypehandler
        assert cursor.executed == ("SELECT NOTE, DATA, ID FROM DOC", [])
        for type_code in ("CLOB", "NCLOB", "BLOB", "NUMBER"):
            handler(cursor, SimpleNamespace(type_code=type_code))
        assert cursor.var_types == ["LONG", "LONG_NVARCHAR", "LONG_RAW"]

    def test_only_expected_lob_kinds_converted(self, fake_oracledb):
        cursor = _FakeOracleCursor()
        OracleSession().prepare_cursor(cursor, (ColumnType.BINARY,))
        assert cursor.outputtypehandler(cursor, SimpleNamespace(type_code="CLOB")) is None
        assert cursor.var_types == []

    def test_no_handler_without_lob_columns(self, fake_oracledb):
        cursor = _FakeOracleCursor()
        OracleSession().prepare_cursor(cursor, (ColumnType.INT64, ColumnType.TIME))
        assert not hasattr(cursor, "outputtypehandler")


class TestBackendConfig:
    def test_sqlite_default_path(self):
        assert BackendConfig().to_connection_string() == ":memory:"
        assert BackendConfig(path="x.db").to_connection_string() == "x.db"


class TestCursorRowSet:
    def test_iterates_cursor(self):
        class Cursor:
            def __init__(self):
                self._rows = [(1,), (2,)]

            def fetchone(self):
                return self._rows.pop(0) if self._rows else None

        rows = CursorRowSet(Cursor())
        values = []
        while rows.next():
            values.append(rows.current_row()[0])
        assert values == [1, 2]
