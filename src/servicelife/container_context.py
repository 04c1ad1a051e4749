from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar, overload

from servicelife.container import Container, ScopedContainer, build_injected_wrapper
from servicelife.dependencies import DependenciesExtractor
from servicelife.exceptions import ContainerNotSetError

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])


class ContainerContext:
    """Process-wide slot for the application's container.

    Request handlers run on worker threads and event-loop tasks alike, so the
    binding is a plain attribute rather than a context variable. Code that
    is declared before the container exists (module-level routes) injects
    through this object and finds the container at call time.
    """

    def __init__(self) -> None:
        self._container: Container | None = None
        self._extractor = DependenciesExtractor()

    def set_current(self, container: Container) -> None:
        """Bind ``container``, replacing any earlier binding."""
        self._container = container

    def get_current(self) -> Container:
        """Return the bound container.

        Raises:
            ContainerNotSetError: If ``set_current`` has not been called.

        """
        if self._container is None:
            raise ContainerNotSetError
        return self._container

    def reset(self) -> None:
        self._container = None

    @overload
    def inject(self, func: F, /, *, scope: str | None = None) -> F: ...

    @overload
    def inject(self, func: None = None, /, *, scope: str | None = None) -> Callable[[F], F]: ...

    def inject(
        self,
        func: F | None = None,
        /,
        *,
        scope: str | None = None,
    ) -> F | Callable[[F], F]:
        """Like ``Container.inject``, but against whichever container is bound per call."""

        def decorator(callable_obj: F) -> F:
            return build_injected_wrapper(
                callable_obj,
                get_container=self.get_current,
                scope=scope,
                extractor=self._extractor,
            )

        if func is None:
            return decorator
        return decorator(func)

    @overload
    def resolve(self, key: type[T]) -> T: ...

    @overload
    def resolve(self, key: Any) -> Any: ...

    def resolve(self, key: Any) -> Any:
        return self.get_current().resolve(key)

    def start_scope(self, scope_name: str | None = None) -> ScopedContainer:
        return self.get_current().start_scope(scope_name)


container_context = ContainerContext()
