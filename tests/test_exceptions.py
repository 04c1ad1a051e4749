"""Tests for the exception hierarchy and its messages."""

import pytest

from servicelife.container_context import ContainerContext
from servicelife.exceptions import (
    CircularDependencyError,
    ContainerNotSetError,
    MissingDependenciesError,
    ScopeMismatchError,
    ServiceLifeError,
    ServiceNotRegisteredError,
)


class ServiceA:
    pass


class ServiceB:
    pass


class TestMessages:
    def test_service_not_registered(self) -> None:
        error = ServiceNotRegisteredError(ServiceA)

        assert error.service_key is ServiceA
        assert str(error) == "Service 'ServiceA' is not registered."

    def test_missing_dependencies_lists_every_key(self) -> None:
        error = MissingDependenciesError(ServiceA, [ServiceB, int])

        assert error.missing == [ServiceB, int]
        assert "ServiceB, int" in str(error)

    def test_circular_dependency_shows_chain(self) -> None:
        error = CircularDependencyError(ServiceA, [ServiceA, ServiceB])

        assert str(error) == "Circular dependency detected: ServiceA -> ServiceB -> ServiceA."

    def test_scope_mismatch_names_service(self) -> None:
        error = ScopeMismatchError(ServiceA, "no scope.")

        assert str(error) == "Service 'ServiceA': no scope."


class TestRaised:
    def test_unbound_context_raises(self) -> None:
        with pytest.raises(ContainerNotSetError, match="set_current"):
            ContainerContext().get_current()

    @pytest.mark.parametrize(
        "error_type",
        [
            ServiceNotRegisteredError,
            MissingDependenciesError,
            CircularDependencyError,
            ScopeMismatchError,
            ContainerNotSetError,
        ],
    )
    def test_all_errors_derive_from_base(self, error_type: type[Exception]) -> None:
        assert issubclass(error_type, ServiceLifeError)
