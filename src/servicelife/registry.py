from __future__ import annotations

import inspect
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from servicelife.exceptions import InvalidRegistrationError, ServiceNotRegisteredError
from servicelife.types import Lifetime


@dataclass(frozen=True, slots=True)
class Registration:
    """A capability bound to the class that provides it and its lifetime."""

    service_key: type[Any]
    """The capability this registration provides."""

    concrete_type: type[Any]
    """The class instantiated to satisfy the capability."""

    lifetime: Lifetime = Lifetime.TRANSIENT
    """How long a created instance is reused."""

    instance: Any | None = None
    """A pre-built instance, served as a singleton."""


class Registry:
    """Holds all registrations of a container, keyed by capability."""

    def __init__(self) -> None:
        self._registrations: dict[type[Any], Registration] = {}
        self._lock = threading.Lock()

    def add(self, registration: Registration) -> None:
        """Add a registration, replacing any previous one for the same key."""
        with self._lock:
            self._registrations[registration.service_key] = registration

    def get(self, service_key: Any) -> Registration:
        """Get the registration for ``service_key`` or raise ``ServiceNotRegisteredError``."""
        registration = self._registrations.get(service_key)
        if registration is None:
            raise ServiceNotRegisteredError(service_key)
        return registration

    def find(self, service_key: Any) -> Registration | None:
        """Get the registration for ``service_key``, if it exists."""
        return self._registrations.get(service_key)

    def values(self) -> list[Registration]:
        """Get all registrations."""
        return list(self._registrations.values())

    def __contains__(self, service_key: object) -> bool:
        return service_key in self._registrations

    def __iter__(self) -> Iterator[type[Any]]:
        return iter(list(self._registrations))

    def __len__(self) -> int:
        return len(self._registrations)


class RegistrationValidator:
    """Validates registration arguments before a ``Registration`` is built."""

    def validate_service_key(self, service_key: object) -> None:
        """Validate that a service key is a class."""
        if not inspect.isclass(service_key):
            msg = f"Service key must be a class, got {service_key!r}."
            raise InvalidRegistrationError(msg)

    def validate_concrete_type(self, concrete_type: object) -> None:
        """Validate that a concrete type is instantiable."""
        if not inspect.isclass(concrete_type):
            msg = f"Concrete type must be a class, got {concrete_type!r}."
            raise InvalidRegistrationError(msg)

        if inspect.isabstract(concrete_type):
            msg = f"Concrete type '{concrete_type.__qualname__}' cannot be an abstract class."
            raise InvalidRegistrationError(msg)

    def validate_instance(self, instance: object, lifetime: Lifetime) -> None:
        """Validate that pre-built instances are only registered as singletons."""
        if instance is not None and lifetime is not Lifetime.SINGLETON:
            msg = (
                f"Instances can only be registered with Lifetime.SINGLETON, "
                f"got Lifetime.{lifetime.name}."
            )
            raise InvalidRegistrationError(msg)
