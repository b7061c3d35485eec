import asyncio

import pytest

from conftest import sqlite_request
from core.db_connector import create_pool, open_pool
from core.errors import ConfigurationError, ConnectionFailure
from core.query_executor import execute_query
from models.connection import ConnectionRequest


def test_missing_credentials_fail_at_creation():
    with pytest.raises(ConfigurationError, match="host, username, password"):
        create_pool(ConnectionRequest(db_type="mariadb"))


def test_missing_password_fails_at_creation():
    with pytest.raises(ConfigurationError, match="password"):
        create_pool(ConnectionRequest(host="db", username="agent"))


@pytest.mark.asyncio
async def test_handle_carries_policy_and_limits(temp_sqlite_db):
    handle = create_pool(sqlite_request(temp_sqlite_db, allow_ddl=True, row_limit=10, query_timeout_seconds=2))
    try:
        assert handle.policy.allow_dml is False
        assert handle.policy.allow_ddl is True
        assert handle.row_limit == 10
        assert handle.query_timeout == 2
        assert handle.describe()["allow_ddl"] is True
    finally:
        await handle.dispose()


@pytest.mark.asyncio
async def test_open_pool_pings(temp_sqlite_db):
    handle = await open_pool(sqlite_request(temp_sqlite_db))
    assert not handle.disposed
    await handle.dispose()
    assert handle.disposed


@pytest.mark.asyncio
async def test_open_pool_unreachable_disposes(tmp_path):
    missing = tmp_path / "no_such_dir" / "db.sqlite"
    with pytest.raises(ConnectionFailure):
        await open_pool(sqlite_request(str(missing)))


@pytest.mark.asyncio
async def test_pool_bounds_concurrent_connections(temp_sqlite_db):
    handle = create_pool(sqlite_request(temp_sqlite_db, pool_size=2))
    active = 0
    peak = 0

    async def hold():
        nonlocal active, peak
        async with handle.connection():
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.05)
            active -= 1

    try:
        await asyncio.gather(*(hold() for _ in range(6)))
        assert peak == 2
        result = await execute_query(handle, "SELECT 1 AS one")
        assert result.rows == [{"one": 1}]
    finally:
        await handle.dispose()


@pytest.mark.asyncio
async def test_dispose_twice_is_harmless(temp_sqlite_db):
    handle = create_pool(sqlite_request(temp_sqlite_db))
    await handle.dispose()
    await handle.dispose()
    assert handle.disposed
