from servicelife.container import Container, ScopedContainer, ScopeId
from servicelife.container_context import ContainerContext, container_context
from servicelife.exceptions import (
    CircularDependencyError,
    ContainerNotSetError,
    DependencyExtractionError,
    InvalidRegistrationError,
    MissingDependenciesError,
    ScopeMismatchError,
    ServiceLifeError,
    ServiceNotRegisteredError,
)
from servicelife.services import (
    GuidService,
    IdentifierService,
    ScopedGuidService,
    SingletonGuidService,
    TransientGuidService,
)
from servicelife.types import Injected, Lifetime

__all__ = [
    "CircularDependencyError",
    "Container",
    "ContainerContext",
    "ContainerNotSetError",
    "DependencyExtractionError",
    "GuidService",
    "IdentifierService",
    "Injected",
    "InvalidRegistrationError",
    "Lifetime",
    "MissingDependenciesError",
    "ScopeId",
    "ScopeMismatchError",
    "ScopedContainer",
    "ScopedGuidService",
    "ServiceLifeError",
    "ServiceNotRegisteredError",
    "SingletonGuidService",
    "TransientGuidService",
    "container_context",
]
