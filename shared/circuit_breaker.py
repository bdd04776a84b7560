"""
Circuit breaker for calls to external collaborators.
"""

import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Tuple, Type, Union

from shared.logging import get_logger


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, calls blocked
    HALF_OPEN = "half_open"  # Probing whether the collaborator recovered


class CircuitBreakerOpenError(Exception):
    """Raised instead of calling through while the circuit is open."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Circuit breaker '{name}' is OPEN - blocking call")


ExceptionTypes = Union[Type[BaseException], Tuple[Type[BaseException], ...]]


class CircuitBreaker:
    """Counts consecutive ``expected_exception`` failures and opens after
    ``failure_threshold`` of them. Other exceptions pass through without
    affecting the state.
    """

    def __init__(self,
                 name: str = "default",
                 failure_threshold: int = 5,
                 recovery_timeout: float = 60.0,
                 expected_exception: ExceptionTypes = Exception,
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self._clock = clock
        self.logger = get_logger(f"circuit_breaker.{name}")

        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitBreakerState:
        if (self._state is CircuitBreakerState.OPEN
                and self._clock() - self._opened_at >= self.recovery_timeout):
            self._state = CircuitBreakerState.HALF_OPEN
            self.logger.info("Circuit breaker transitioning to half-open")
        return self._state

    def is_open(self) -> bool:
        return self.state is CircuitBreakerState.OPEN

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Execute ``func`` with circuit breaker protection."""
        if self.is_open():
            raise CircuitBreakerOpenError(self.name)

        try:
            result = await func(*args, **kwargs)
        except self.expected_exception:
            self._record_failure()
            raise

        if self._state is CircuitBreakerState.HALF_OPEN:
            self.logger.info("Circuit breaker reset to CLOSED after successful call")
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        return result

    def _record_failure(self):
        self._failure_count += 1
        if (self._state is CircuitBreakerState.HALF_OPEN
                or self._failure_count >= self.failure_threshold):
            self._state = CircuitBreakerState.OPEN
            self._opened_at = self._clock()
            self.logger.warning(
                "Circuit breaker opened due to failures",
                failure_count=self._failure_count,
                threshold=self.failure_threshold
            )

    def get_state(self) -> Dict[str, Any]:
        """Get current circuit breaker state."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "recovery_timeout": self.recovery_timeout
        }
