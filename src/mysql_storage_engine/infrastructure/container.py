"""Dependency injection container.

Wires options, settings, metrics and the engine together for hosts that
load the engine through ``load_engine``. Tests fill their own container
with fakes (for example a fake pool factory) instead of the global one.

Registrations are keyed by type. An instance registration is returned
as-is; a factory runs on first resolution and its result is cached until
the registration is replaced or the container is cleared.
"""

from __future__ import annotations

import inspect
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

from mysql_storage_engine.infrastructure.logging import get_logger

T = TypeVar("T")

Factory = Callable[["Container"], Any]

logger = get_logger(__name__)


class Container:
    """Type-keyed registry of shared objects with lazily built instances."""

    def __init__(self) -> None:
        self._factories: dict[type, Factory] = {}
        self._resolved: dict[type, Any] = {}

    def register_singleton(self, interface: type[T], instance: T) -> None:
        """Register a ready-made instance for ``interface``."""
        self._factories.pop(interface, None)
        self._resolved[interface] = instance

    def register_factory(self, interface: type[T], factory: Callable[[Container], T]) -> None:
        """
        Register a factory building ``interface`` from the container.

        Replaces any earlier registration and forgets an instance that was
        already built from it.
        """
        self._factories[interface] = factory
        self._resolved.pop(interface, None)

    def resolve(self, interface: type[T]) -> T:
        """
        Return the instance registered for ``interface``, building it if needed.

        Raises:
            KeyError: If nothing is registered for ``interface``
        """
        if interface in self._resolved:
            return self._resolved[interface]
        try:
            factory = self._factories[interface]
        except KeyError:
            raise KeyError(f"No registration found for {interface.__name__}") from None

        instance = factory(self)
        self._resolved[interface] = instance
        return instance

    def has(self, interface: type) -> bool:
        """Whether ``interface`` can be resolved."""
        return interface in self._resolved or interface in self._factories

    @contextmanager
    def override(self, interface: type[T], instance: T) -> Iterator[T]:
        """Temporarily resolve ``interface`` to ``instance``; restores the previous registration."""
        saved_factory = self._factories.pop(interface, None)
        had_instance = interface in self._resolved
        saved_instance = self._resolved.get(interface)

        self._resolved[interface] = instance
        try:
            yield instance
        finally:
            self._resolved.pop(interface, None)
            if saved_factory is not None:
                self._factories[interface] = saved_factory
            if had_instance:
                self._resolved[interface] = saved_instance

    async def aclose(self) -> None:
        """Await ``close()`` on every built instance that has one, then clear.

        Engines resolved from the container own a connection pool; this is
        how a host shuts them down.
        """
        for interface, instance in list(self._resolved.items()):
            close = getattr(instance, "close", None)
            if close is None:
                continue
            result = close()
            if inspect.isawaitable(result):
                await result
            logger.debug("container_closed_instance", interface=interface.__name__)
        self.clear()

    def clear(self) -> None:
        """Drop all registrations and built instances."""
        self._factories.clear()
        self._resolved.clear()


_container: Container | None = None


def get_container() -> Container:
    """The process-wide container."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    """Discard the process-wide container (tests)."""
    global _container
    if _container is not None:
        _container.clear()
    _container = None
