"""
Dependency container for the Taskflow backend.

Capabilities are named by ``CapabilityToken`` values and bound explicitly to
factories by the composition root; there is no reflection or decorator
based wiring. Two lifecycles are supported:

- ``Lifecycle.SINGLETON``: the factory runs once, the result is cached for
  the lifetime of the container.
- ``Lifecycle.TRANSIENT``: the factory runs on every ``resolve``.

Factories receive the container and may resolve their own dependencies.
Each resolution chain is tracked in a context variable so a capability that
requires itself fails with ``CyclicDependencyError`` instead of recursing.

Example:
    >>> DATABASE = CapabilityToken("Database")
    >>> container = Container()
    >>> _ = container.bind(DATABASE, lambda c: object(), Lifecycle.SINGLETON)
    >>> container.resolve(DATABASE) is container.resolve(DATABASE)
    True
"""

from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from shared.logging import get_logger
from shared.errors import UnboundCapabilityError, CyclicDependencyError


@dataclass(frozen=True)
class CapabilityToken:
    """Opaque key naming one abstract capability."""

    name: str
    description: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name


class Lifecycle(Enum):
    """Instance lifetime of a binding."""
    SINGLETON = "singleton"
    TRANSIENT = "transient"


Factory = Callable[["Container"], Any]

# Tokens currently being resolved in this context, tagged with their container.
_resolution_chain: ContextVar[Tuple[Tuple[int, CapabilityToken], ...]] = ContextVar(
    "container_resolution_chain", default=()
)


@dataclass(frozen=True)
class Binding:
    """Association of a token with a factory and a lifecycle."""

    token: CapabilityToken
    factory: Factory
    lifecycle: Lifecycle


class Container:
    """Registry mapping capability tokens to bindings.

    Not thread-safe: bindings are expected to be registered during startup
    and only resolved afterwards.
    """

    def __init__(self, name: str = "default"):
        self.name = name
        self.logger = get_logger(f"container.{name}")
        self._bindings: Dict[CapabilityToken, Binding] = {}
        self._singletons: Dict[CapabilityToken, Any] = {}

    def bind(self, token: CapabilityToken, factory: Factory,
             lifecycle: Lifecycle = Lifecycle.SINGLETON) -> Binding:
        """Register or replace the binding for ``token``.

        Replacing a binding drops the cached singleton for that token; the
        previously resolved object itself is left untouched.
        """
        if not isinstance(token, CapabilityToken):
            raise TypeError(f"token must be a CapabilityToken, got {type(token).__name__}")
        if not callable(factory):
            raise TypeError(f"factory for '{token}' must be callable")

        binding = Binding(token=token, factory=factory, lifecycle=Lifecycle(lifecycle))
        replaced = token in self._bindings
        self._bindings[token] = binding
        self._singletons.pop(token, None)

        self.logger.debug(
            "Capability bound",
            token=token.name,
            lifecycle=binding.lifecycle.value,
            replaced=replaced
        )
        return binding

    def bind_instance(self, token: CapabilityToken, instance: Any) -> Binding:
        """Register an already constructed object as a singleton."""
        binding = self.bind(token, lambda _: instance, Lifecycle.SINGLETON)
        self._singletons[token] = instance
        return binding

    def is_bound(self, token: CapabilityToken) -> bool:
        """Check whether ``token`` has a binding."""
        return token in self._bindings

    def resolve(self, token: CapabilityToken) -> Any:
        """Resolve ``token`` to an instance."""
        binding = self._bindings.get(token)
        if binding is None:
            raise UnboundCapabilityError(str(token))

        if binding.lifecycle is Lifecycle.SINGLETON and token in self._singletons:
            return self._singletons[token]

        chain = _resolution_chain.get()
        entry = (id(self), token)
        if entry in chain:
            names = [t.name for _, t in chain] + [token.name]
            self.logger.error("Cyclic dependency", chain=names)
            raise CyclicDependencyError(names)

        reset_token = _resolution_chain.set(chain + (entry,))
        try:
            instance = binding.factory(self)
        finally:
            _resolution_chain.reset(reset_token)

        # The factory may have rebound the token; only cache for the binding we ran.
        if binding.lifecycle is Lifecycle.SINGLETON and self._bindings.get(token) is binding:
            self._singletons[token] = instance

        return instance
