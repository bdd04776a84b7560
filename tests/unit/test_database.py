"""
Unit tests for the storage lifecycle manager.
"""

import asyncio

import pytest

from shared.database import Database, StorageState
from shared.errors import AlreadyInitializedError, NotInitializedError, StorageConnectionError
from shared.test_helpers import FakeOpener

DSN = "postgres://localhost:5432/taskflow_test"


class TestDatabase:
    """Test cases for Database."""

    @pytest.fixture
    def opener(self):
        return FakeOpener()

    @pytest.fixture
    def database(self, opener):
        return Database(DSN, opener=opener)

    def test_initial_state(self, database):
        assert database.state is StorageState.UNINITIALIZED
        assert database.is_ready is False

    def test_get_handle_before_connect_raises(self, database):
        with pytest.raises(NotInitializedError) as exc_info:
            database.get_handle()

        assert exc_info.value.details["state"] == "uninitialized"

    @pytest.mark.asyncio
    async def test_connect_opens_once_and_returns_same_handle(self, database, opener):
        await database.connect()

        assert database.state is StorageState.READY
        assert opener.calls == 1
        assert database.get_handle() is database.get_handle()
        assert database.get_handle() is opener.pools[0]
        assert opener.pools[0].dsn == DSN

    @pytest.mark.asyncio
    async def test_second_connect_is_rejected(self, database, opener):
        await database.connect()

        with pytest.raises(AlreadyInitializedError):
            await database.connect()

        assert opener.calls == 1
        assert database.state is StorageState.READY

    @pytest.mark.asyncio
    async def test_concurrent_connect_opens_one_connection(self, opener):
        gate = asyncio.Event()

        async def slow_opener(dsn):
            await gate.wait()
            return await opener(dsn)

        database = Database(DSN, opener=slow_opener)
        first = asyncio.create_task(database.connect())
        await asyncio.sleep(0)
        assert database.state is StorageState.CONNECTING

        with pytest.raises(AlreadyInitializedError):
            await database.connect()
        with pytest.raises(NotInitializedError):
            database.get_handle()

        gate.set()
        await first

        assert opener.calls == 1
        assert database.is_ready

    @pytest.mark.asyncio
    async def test_connect_failure_is_terminal(self):
        opener = FakeOpener(error=OSError("connection refused"))
        database = Database(DSN, opener=opener)

        with pytest.raises(StorageConnectionError) as exc_info:
            await database.connect()

        assert database.state is StorageState.FAILED
        assert exc_info.value.details["error_type"] == "OSError"
        with pytest.raises(NotInitializedError):
            database.get_handle()
        with pytest.raises(AlreadyInitializedError):
            await database.connect()
        assert opener.calls == 1

    @pytest.mark.asyncio
    async def test_disconnect_closes_handle(self, database, opener):
        await database.connect()

        await database.disconnect()

        assert database.state is StorageState.DISCONNECTED
        assert opener.pools[0].closed is True
        with pytest.raises(NotInitializedError):
            database.get_handle()

    @pytest.mark.asyncio
    async def test_disconnect_twice_is_noop(self, database, opener):
        await database.connect()
        await database.disconnect()

        await database.disconnect()

        assert database.state is StorageState.DISCONNECTED
        assert opener.calls == 1

    @pytest.mark.asyncio
    async def test_no_reconnect_after_disconnect(self, database, opener):
        await database.connect()
        await database.disconnect()

        with pytest.raises(AlreadyInitializedError):
            await database.connect()

        assert opener.calls == 1

    @pytest.mark.asyncio
    async def test_disconnect_before_connect_raises(self, database):
        with pytest.raises(NotInitializedError):
            await database.disconnect()

    @pytest.mark.asyncio
    async def test_disconnect_after_failure_is_noop(self):
        database = Database(DSN, opener=FakeOpener(error=OSError("down")))
        with pytest.raises(StorageConnectionError):
            await database.connect()

        await database.disconnect()

        assert database.state is StorageState.FAILED
