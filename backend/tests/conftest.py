import os
import sys

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import asyncio
import sqlite3
import tempfile
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any, Optional

import pytest
import pytest_asyncio

from core.db_connector import create_pool
from core.sql_classifier import PermissionPolicy
from models.connection import ConnectionRequest

BULK_ROWS = 1500


@pytest.fixture
def temp_sqlite_db():
    fd, path = tempfile.mkstemp(suffix=".db")
    try:
        conn = sqlite3.connect(path)
        cur = conn.cursor()
        cur.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT UNIQUE);")
        cur.execute("INSERT INTO users (name, email) VALUES ('Test User', 'test@example.com');")
        cur.execute("INSERT INTO users (name, email) VALUES ('Other User', 'other@example.com');")
        cur.execute("CREATE TABLE blobs (id INTEGER PRIMARY KEY, payload BLOB);")
        cur.execute("INSERT INTO blobs (id, payload) VALUES (1, ?);", (b"\x00\x01\xab\xff",))
        cur.execute("CREATE TABLE bulk (id INTEGER PRIMARY KEY, n INTEGER);")
        cur.executemany("INSERT INTO bulk (id, n) VALUES (?, ?);", [(i, i * 10) for i in range(1, BULK_ROWS + 1)])
        conn.commit()
        conn.close()
        yield path
    finally:
        os.close(fd)
        os.remove(path)


def sqlite_request(path: str, **overrides) -> ConnectionRequest:
    return ConnectionRequest(db_type="sqlite", file_path=path, **overrides)


@pytest_asyncio.fixture
async def sqlite_handle(temp_sqlite_db):
    handle = create_pool(sqlite_request(temp_sqlite_db))
    yield handle
    if not handle.disposed:
        await handle.dispose()


@pytest_asyncio.fixture
async def sqlite_handle_dml(temp_sqlite_db):
    handle = create_pool(sqlite_request(temp_sqlite_db, allow_dml=True, allow_ddl=True))
    yield handle
    if not handle.disposed:
        await handle.dispose()


# ── Fakes for fault injection ────────────────────────────────────────────────

class FakeResult:
    def __init__(self, rows: Optional[list[dict]] = None, rowcount: int = 0):
        self._rows = rows
        self.rowcount = rowcount

    @property
    def returns_rows(self) -> bool:
        return self._rows is not None

    def keys(self):
        return list(self._rows[0].keys()) if self._rows else []

    def mappings(self):
        return SimpleNamespace(all=lambda: list(self._rows))


class FakeConnection:
    """Records statements; ``respond`` decides what each statement returns or raises."""

    def __init__(self, dialect_name: str = "mysql", respond=None, delay: float = 0):
        self.dialect = SimpleNamespace(name=dialect_name)
        self.statements: list[str] = []
        self.respond = respond or (lambda sql, params: FakeResult([{"ok": 1}]))
        self.delay = delay
        self.committed = 0
        self.invalidated = False

    async def _answer(self, sql: str, params: Any):
        self.statements.append(sql)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.respond(sql, params)

    async def exec_driver_sql(self, sql, parameters=None, execution_options=None):
        if sql.startswith("USE "):
            self.statements.append(sql)
            return FakeResult()
        return await self._answer(sql, parameters)

    async def execute(self, statement, parameters=None):
        return await self._answer(str(statement), parameters)

    async def commit(self):
        self.committed += 1

    async def invalidate(self):
        self.invalidated = True


class FakeHandle:
    """Duck-typed PoolHandle that counts acquire/release."""

    def __init__(self, conn: FakeConnection, policy: PermissionPolicy = PermissionPolicy(),
                 row_limit: int = 1000, query_timeout: float = 10.0, default_database: Optional[str] = "shop"):
        self.conn = conn
        self.policy = policy
        self.row_limit = row_limit
        self.query_timeout = query_timeout
        self.default_database = default_database
        self.acquired = 0
        self.released = 0

    @asynccontextmanager
    async def connection(self):
        self.acquired += 1
        try:
            yield self.conn
        finally:
            self.released += 1
