"""
Dependency Injection Container

Manages service lifecycles and dependency resolution.
Adapters are registered once at startup and closed on shutdown.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class DependencyNotFoundError(Exception):
    """Raised when attempting to resolve an unregistered dependency."""
    pass


class DependencyContainer:
    """
    Dependency injection container for managing service lifecycles.

    Supports singleton (single instance) and transient (factory-created)
    registration patterns. Thread-safe for concurrent access.
    """

    def __init__(self):
        """Initialize the dependency container."""
        self._singletons: Dict[Type, Any] = {}
        self._transients: Dict[Type, Callable[[], Any]] = {}
        self._overrides: Dict[Type, Any] = {}
        self._lock = threading.Lock()
        self._closed = False

        logger.debug("DependencyContainer initialized")

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Register a singleton service (single instance shared across all resolutions).

        Args:
            interface: The interface or class type to register
            implementation: The concrete instance to use

        Example:
            container.register_singleton(TokenRecordRepository, record_repository)
        """
        with self._lock:
            self._singletons[interface] = implementation
            logger.debug(f"Registered singleton: {interface.__name__}")

    def register_transient(self, interface: Type[T], factory: Callable[[], T]) -> None:
        """
        Register a transient service (new instance created on each resolution).

        Args:
            interface: The interface or class type to register
            factory: A callable that creates new instances
        """
        with self._lock:
            self._transients[interface] = factory
            logger.debug(f"Registered transient: {interface.__name__}")

    def resolve(self, interface: Type[T]) -> T:
        """
        Resolve a registered service.

        Args:
            interface: The interface or class type to resolve

        Returns:
            The resolved service instance

        Raises:
            DependencyNotFoundError: If the interface is not registered

        Example:
            controller = container.resolve(TokenLifecycleController)
        """
        with self._lock:
            # Check for overrides first (for testing)
            if interface in self._overrides:
                return self._overrides[interface]

            if interface in self._singletons:
                return self._singletons[interface]

            if interface in self._transients:
                factory = self._transients[interface]
            else:
                raise DependencyNotFoundError(
                    f"No registration found for type: {interface.__name__}"
                )

        # Call factory outside the lock to allow nested resolve calls
        return factory()

    def override(self, interface: Type[T], implementation: T) -> None:
        """
        Override a registered service (primarily for testing).

        Overrides take precedence over both singleton and transient registrations.
        """
        with self._lock:
            self._overrides[interface] = implementation
            logger.debug(f"Overridden: {interface.__name__}")

    def clear_overrides(self) -> None:
        """Clear all overrides."""
        with self._lock:
            self._overrides.clear()

    def is_registered(self, interface: Type) -> bool:
        """
        Check if an interface is registered.

        Returns:
            True if registered (singleton, transient, or override)
        """
        with self._lock:
            return (
                interface in self._singletons or
                interface in self._transients or
                interface in self._overrides
            )

    def shutdown(self) -> List[str]:
        """
        Close every registered singleton that exposes ``close()``.

        Instances registered under several interfaces are closed once.
        Failures are logged and do not stop the remaining closes.

        Returns:
            Names of the types whose close() failed
        """
        with self._lock:
            if self._closed:
                return []
            self._closed = True
            singletons = list(self._singletons.items())

        failures = []
        seen = set()
        for interface, instance in singletons:
            close = getattr(instance, "close", None)
            if not callable(close) or id(instance) in seen:
                continue
            seen.add(id(instance))
            try:
                close()
                logger.debug(f"Closed {interface.__name__}")
            except Exception:
                logger.exception(f"Failed to close {interface.__name__}")
                failures.append(interface.__name__)
        return failures
