"""
PostgreSQL connection lifecycle for the Taskflow backend.

One ``Database`` instance owns the shared connection pool. It is connected
once during startup and handed out by reference afterwards; consumers must
never close or replace the handle themselves.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import asyncpg

from shared.logging import get_logger
from shared.errors import AlreadyInitializedError, NotInitializedError, StorageConnectionError


class StorageState(Enum):
    """Connection lifecycle states."""
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"
    DISCONNECTED = "disconnected"


Opener = Callable[[str], Awaitable[Any]]


class Database:
    """Singleton-style manager for the shared storage handle.

    State machine::

        UNINITIALIZED -> CONNECTING -> READY -> DISCONNECTED
                                    -> FAILED

    ``connect()`` is accepted only from ``UNINITIALIZED``; calling it again
    from any other state raises ``AlreadyInitializedError`` and never opens
    a second connection.
    """

    resource_name = "Database"

    def __init__(self, dsn: str, opener: Optional[Opener] = None,
                 min_size: int = 2, max_size: int = 10, command_timeout: float = 30.0):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self._opener = opener or self._create_pool
        self._handle: Any = None
        self._state = StorageState.UNINITIALIZED
        self.logger = get_logger("storage.database")

    @property
    def state(self) -> StorageState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is StorageState.READY

    async def _create_pool(self, dsn: str) -> asyncpg.Pool:
        return await asyncpg.create_pool(
            dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=self.command_timeout
        )

    async def connect(self) -> None:
        """Open the shared connection.

        Raises:
            AlreadyInitializedError: connect() was already called.
            StorageConnectionError: the driver handshake failed. The
                manager is left in ``FAILED`` and cannot be reused.
        """
        if self._state is not StorageState.UNINITIALIZED:
            raise AlreadyInitializedError(self.resource_name, self._state.value)

        # Claim the transition before the first await.
        self._state = StorageState.CONNECTING
        try:
            handle = await self._opener(self.dsn)
        except Exception as e:
            self._state = StorageState.FAILED
            self.logger.error("Storage connection failed", error=str(e))
            raise StorageConnectionError(
                f"Storage connection failed: {e}",
                details={"error_type": type(e).__name__}
            ) from e

        self._handle = handle
        self._state = StorageState.READY
        self.logger.info("Connected to storage")

    def get_handle(self) -> Any:
        """Return the shared handle; only valid once connected."""
        if self._state is not StorageState.READY:
            raise NotInitializedError(self.resource_name, self._state.value)
        return self._handle

    async def disconnect(self) -> None:
        """Release the shared connection.

        Repeated calls after shutdown, or calls after a failed connect, are
        logged and ignored.
        """
        if self._state in (StorageState.DISCONNECTED, StorageState.FAILED):
            self.logger.warning("Disconnect ignored", state=self._state.value)
            return
        if self._state is not StorageState.READY:
            raise NotInitializedError(self.resource_name, self._state.value)

        handle = self._handle
        self._handle = None
        self._state = StorageState.DISCONNECTED
        await handle.close()
        self.logger.info("Disconnected from storage")
