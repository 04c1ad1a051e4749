from __future__ import annotations

from typing import Any


def _name(value: Any) -> str:
    return getattr(value, "__qualname__", None) or repr(value)


class ServiceLifeError(Exception):
    """Represent a base class for all container failures.

    Catch this type when you want to handle any container error path without
    matching each concrete exception class individually.
    """


class InvalidRegistrationError(ServiceLifeError):
    """Signal invalid registration arguments.

    Raised by ``Container.register`` when the key or concrete type is not a
    class, the concrete type is abstract, or a pre-built instance is combined
    with a lifetime other than ``Lifetime.SINGLETON``.
    """


class ServiceNotRegisteredError(ServiceLifeError):
    """Signal that a service key has no registration.

    Typical fix is registering the service in the composition root before the
    first resolution.
    """

    def __init__(self, service_key: Any) -> None:
        self.service_key = service_key
        super().__init__(f"Service '{_name(service_key)}' is not registered.")


class MissingDependenciesError(ServiceLifeError):
    """Signal that a registration depends on services that are not registered.

    Raised by ``Container.validate`` at composition time and by ``resolve``
    when a constructor parameter has no registration.
    """

    def __init__(self, service_key: Any, missing: list[Any]) -> None:
        self.service_key = service_key
        self.missing = missing
        missing_names = ", ".join(_name(key) for key in missing)
        super().__init__(
            f"Cannot build '{_name(service_key)}': missing registrations for {missing_names}.",
        )


class CircularDependencyError(ServiceLifeError):
    """Signal a dependency cycle found while resolving a service."""

    def __init__(self, service_key: Any, resolution_chain: list[Any]) -> None:
        self.service_key = service_key
        self.resolution_chain = resolution_chain
        chain = " -> ".join(_name(key) for key in [*resolution_chain, service_key])
        super().__init__(f"Circular dependency detected: {chain}.")


class ScopeMismatchError(ServiceLifeError):
    """Signal resolution at an invalid scope.

    Raised when a scoped service is resolved with no active scope, when a
    service is resolved through a scope that has already exited, and by
    ``Container.validate`` when a singleton would capture a scoped service.

    Typical fix is entering a scope first
    (``with container.start_scope("request"): ...``) or adjusting lifetimes.
    """

    def __init__(self, service_key: Any, message: str) -> None:
        self.service_key = service_key
        super().__init__(f"Service '{_name(service_key)}': {message}")


class DependencyExtractionError(ServiceLifeError):
    """Signal that type hints of a constructor or function cannot be evaluated."""

    def __init__(self, service_key: Any, error: Exception) -> None:
        self.service_key = service_key
        self.error = error
        super().__init__(f"Failed to extract dependencies of '{_name(service_key)}': {error}")


class ContainerNotSetError(ServiceLifeError):
    """Signal use of ``container_context`` before a container is bound.

    Typical fix is calling ``container_context.set_current(container)`` during
    application startup before resolution calls.
    """

    def __init__(self) -> None:
        super().__init__(
            "No container is bound to the current context. "
            "Call container_context.set_current(container) first.",
        )
