from __future__ import annotations

import functools
import inspect
import itertools
import logging
import threading
import types
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ClassVar, TypeVar, overload

from typing_extensions import Self

from servicelife.dependencies import DependenciesExtractor
from servicelife.exceptions import (
    CircularDependencyError,
    MissingDependenciesError,
    ScopeMismatchError,
)
from servicelife.registry import Registration, RegistrationValidator, Registry
from servicelife.types import Lifetime

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)

INJECTED_WRAPPER_ATTR = "__servicelife_wrapped__"

ScopeKey = tuple[tuple[str | None, int], ...]


@dataclass(frozen=True, slots=True)
class ScopeId:
    """Tuple-based scope identifier.

    Each segment is a (scope_name, instance_id) pair, outermost first.
    """

    segments: ScopeKey

    @property
    def path(self) -> str:
        """Generate string path only when needed (logs and error messages)."""
        parts = []
        for name, id_ in self.segments:
            parts.append(f"{name}/{id_}" if name else str(id_))
        return "/".join(parts)

    def contains_scope(self, scope_name: str) -> bool:
        """Check if this scope or one of its parents has the given name."""
        return any(name == scope_name for name, _ in self.segments)


# Current scope of the running thread or task
_current_scope: ContextVar[ScopeId | None] = ContextVar("current_scope", default=None)

# Keys being constructed in the current context, outermost first
_resolution_stack: ContextVar[tuple[Any, ...]] = ContextVar("resolution_stack", default=())


@dataclass
class ScopedContainer:
    """A context manager for scoped dependency resolution.

    Supports both ``with container.start_scope()`` and
    ``async with container.start_scope()``.
    """

    _container: Container
    _scope_id: ScopeId
    _token: Any = field(default=None, init=False)
    _entered: bool = field(default=False, init=False)
    _exited: bool = field(default=False, init=False)

    @property
    def scope_id(self) -> ScopeId:
        return self._scope_id

    def resolve(self, key: type[T]) -> T:
        """Resolve a service within this scope."""
        if not self._entered:
            msg = (
                f"scope '{self._scope_id.path}' has not been entered; "
                "use it as a context manager."
            )
            raise ScopeMismatchError(key, msg)
        if self._exited:
            msg = f"scope '{self._scope_id.path}' has already exited."
            raise ScopeMismatchError(key, msg)
        token = _current_scope.set(self._scope_id)
        try:
            return self._container.resolve(key)
        finally:
            _current_scope.reset(token)

    def start_scope(self, scope_name: str | None = None) -> ScopedContainer:
        """Start a nested scope."""
        return self._container.start_scope(scope_name)

    def __enter__(self) -> Self:
        self._token = _current_scope.set(self._scope_id)
        self._entered = True
        logger.debug("Entered scope %s", self._scope_id.path)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        _current_scope.reset(self._token)
        self._container.clear_scope(self._scope_id)
        self._exited = True
        logger.debug("Exited scope %s", self._scope_id.path)

    async def __aenter__(self) -> Self:
        return self.__enter__()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


class Container:
    """Dependency injection container for registering and resolving services.

    Every service is registered explicitly with one of three lifetimes:

    - ``Lifetime.TRANSIENT``: constructed on every resolution.
    - ``Lifetime.SCOPED``: constructed once per active scope.
    - ``Lifetime.SINGLETON``: constructed once for the container's life.

    Constructor parameters are resolved from their type hints.
    """

    # Class-level counter for generating unique scope IDs
    _scope_counter: ClassVar[itertools.count[int]] = itertools.count()

    __slots__ = (
        "_dependencies_extractor",
        "_registry",
        "_scoped_instances",
        "_scoped_locks",
        "_scoped_locks_lock",
        "_singleton_locks",
        "_singleton_locks_lock",
        "_singletons",
        "_validator",
    )

    def __init__(self) -> None:
        self._registry = Registry()
        self._validator = RegistrationValidator()
        self._dependencies_extractor = DependenciesExtractor()

        self._singletons: dict[type[Any], Any] = {}
        # Scoped instance cache: scope key -> service key -> instance
        self._scoped_instances: dict[ScopeKey, dict[type[Any], Any]] = {}

        # Per-service-key locks for singleton construction
        self._singleton_locks: dict[type[Any], threading.Lock] = {}
        self._singleton_locks_lock = threading.Lock()

        # Scoped construction locks: scope key -> service key -> lock
        self._scoped_locks: dict[ScopeKey, dict[type[Any], threading.Lock]] = {}
        self._scoped_locks_lock = threading.Lock()

        self.register(type(self), instance=self, lifetime=Lifetime.SINGLETON)

    def register(
        self,
        key: type[Any],
        /,
        concrete: type[Any] | None = None,
        *,
        instance: Any | None = None,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> None:
        """Register a service with the container.

        Args:
            key: The capability to register.
            concrete: Optional class instantiated to provide ``key``. Defaults to ``key``.
            instance: Optional pre-created instance. Requires ``Lifetime.SINGLETON``.
            lifetime: The lifetime of the service.

        Raises:
            InvalidRegistrationError: If ``key`` or ``concrete`` is not a class,
                ``concrete`` is abstract, or ``instance`` is given with a
                non-singleton lifetime.

        """
        self._validator.validate_service_key(key)
        self._validator.validate_instance(instance, lifetime)
        if instance is not None:
            concrete_type: type[Any] = type(instance)
        else:
            concrete_type = concrete if concrete is not None else key
            self._validator.validate_concrete_type(concrete_type)

        registration = Registration(
            service_key=key,
            concrete_type=concrete_type,
            lifetime=lifetime,
            instance=instance,
        )
        self._registry.add(registration)

        # Re-registration overwrites any previously cached value
        if instance is not None:
            self._singletons[key] = instance
        else:
            self._singletons.pop(key, None)

        logger.debug(
            "Registered %s as %s (%s)",
            key.__qualname__,
            concrete_type.__qualname__,
            lifetime.value,
        )

    def is_registered(self, key: Any) -> bool:
        """Return true when ``key`` has a registration."""
        return key in self._registry

    def start_scope(self, scope_name: str | None = None) -> ScopedContainer:
        """Start a new scope for resolving ``Lifetime.SCOPED`` services.

        Args:
            scope_name: Optional name for the scope, used in logs and errors.

        Returns:
            A ScopedContainer context manager.

        Note:
            A scope started within another scope gets its own scoped instances.

        """
        instance_id = next(self._scope_counter)
        new_segment = (scope_name, instance_id)

        current = _current_scope.get()
        segments = (*current.segments, new_segment) if current is not None else (new_segment,)

        return ScopedContainer(_container=self, _scope_id=ScopeId(segments=segments))

    def clear_scope(self, scope_id: ScopeId) -> None:
        """Clear cached instances for a scope.

        Args:
            scope_id: The scope ID to clear.

        """
        with self._scoped_locks_lock:
            self._scoped_instances.pop(scope_id.segments, None)
            self._scoped_locks.pop(scope_id.segments, None)

    @overload
    def resolve(self, key: type[T]) -> T: ...

    @overload
    def resolve(self, key: Any) -> Any: ...

    def resolve(self, key: Any) -> Any:
        """Resolve an instance of ``key`` honoring its registered lifetime.

        Raises:
            ServiceNotRegisteredError: If ``key`` has no registration.
            ScopeMismatchError: If ``key`` is scoped and no scope is active.
            CircularDependencyError: If ``key`` is already being constructed.
            MissingDependenciesError: If a constructor dependency is not registered.

        """
        stack = _resolution_stack.get()
        if key in stack:
            raise CircularDependencyError(key, list(stack))

        registration = self._registry.get(key)

        if registration.lifetime is Lifetime.SINGLETON:
            return self._resolve_singleton(registration)
        if registration.lifetime is Lifetime.SCOPED:
            return self._resolve_scoped(registration)
        return self._create(registration)

    def _resolve_singleton(self, registration: Registration) -> Any:
        key = registration.service_key
        try:
            return self._singletons[key]
        except KeyError:
            pass

        with self._get_singleton_lock(key):
            # Double-check after acquiring the lock
            if key in self._singletons:
                return self._singletons[key]
            instance = self._create(registration)
            self._singletons[key] = instance
            logger.info("Created singleton %s", key.__qualname__)
            return instance

    def _resolve_scoped(self, registration: Registration) -> Any:
        key = registration.service_key
        current_scope = _current_scope.get()
        if current_scope is None:
            msg = (
                "scoped services require an active scope; "
                "resolve them inside 'with container.start_scope(...)'."
            )
            raise ScopeMismatchError(key, msg)

        scope_key = current_scope.segments
        cache = self._scoped_instances.get(scope_key)
        if cache is not None and key in cache:
            return cache[key]

        # One lock per (scope, key); scoped dependencies take their own lock
        with self._get_scoped_lock(scope_key, key):
            cache = self._scoped_instances.get(scope_key)
            # Double-check after acquiring the lock
            if cache is not None and key in cache:
                return cache[key]
            instance = self._create(registration)
            with self._scoped_locks_lock:
                self._scoped_instances.setdefault(scope_key, {})[key] = instance
            return instance

    def _create(self, registration: Registration) -> Any:
        key = registration.service_key
        token = _resolution_stack.set((*_resolution_stack.get(), key))
        try:
            dependencies: dict[str, Any] = {}
            missing: list[Any] = []
            parameters = self._dependencies_extractor.get_dependencies(registration.concrete_type)
            for name, info in parameters.items():
                if info.service_key in self._registry:
                    dependencies[name] = self.resolve(info.service_key)
                elif not info.has_default:
                    missing.append(info.service_key)
            if missing:
                raise MissingDependenciesError(key, missing)
            return registration.concrete_type(**dependencies)
        finally:
            _resolution_stack.reset(token)

    def _get_singleton_lock(self, key: type[Any]) -> threading.Lock:
        with self._singleton_locks_lock:
            lock = self._singleton_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._singleton_locks[key] = lock
            return lock

    def _get_scoped_lock(self, scope_key: ScopeKey, key: type[Any]) -> threading.Lock:
        with self._scoped_locks_lock:
            locks = self._scoped_locks.setdefault(scope_key, {})
            lock = locks.get(key)
            if lock is None:
                lock = threading.Lock()
                locks[key] = lock
            return lock

    def validate(self) -> None:
        """Check every registration can be built, before serving any request.

        Raises:
            MissingDependenciesError: If a constructor dependency is not registered.
            ScopeMismatchError: If a singleton depends, directly or through
                transient services, on a scoped service.

        """
        for registration in self._registry.values():
            if registration.instance is not None:
                continue

            parameters = self._dependencies_extractor.get_dependencies(registration.concrete_type)
            missing = [
                info.service_key
                for info in parameters.values()
                if info.service_key not in self._registry and not info.has_default
            ]
            if missing:
                raise MissingDependenciesError(registration.service_key, missing)

            if registration.lifetime is Lifetime.SINGLETON:
                captive = self._find_scoped_dependency(registration, set())
                if captive is not None:
                    msg = (
                        f"singleton depends on scoped service '{captive.__qualname__}', "
                        "which would outlive its scope."
                    )
                    raise ScopeMismatchError(registration.service_key, msg)

        logger.debug("Validated %d registrations", len(self._registry))

    def _find_scoped_dependency(
        self,
        registration: Registration,
        visited: set[type[Any]],
    ) -> type[Any] | None:
        if registration.instance is not None or registration.service_key in visited:
            return None
        visited.add(registration.service_key)

        parameters = self._dependencies_extractor.get_dependencies(registration.concrete_type)
        for info in parameters.values():
            dependency = self._registry.find(info.service_key)
            if dependency is None:
                continue
            if dependency.lifetime is Lifetime.SCOPED:
                return dependency.service_key
            if dependency.lifetime is Lifetime.TRANSIENT:
                found = self._find_scoped_dependency(dependency, visited)
                if found is not None:
                    return found
        return None

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
        """Wrap a callable so its ``Injected[...]`` parameters are resolved per call.

        Args:
            func: The callable to wrap. When omitted, returns a decorator.
            scope: When set, every call runs inside a fresh scope with this name.

        The wrapper's signature hides the injected parameters. Explicitly passed
        keyword arguments take precedence over injected values.

        Usage:
            @container.inject(scope="request")
            def index(controller: Injected[HomeController]) -> str:
                return controller.index()

        """

        def decorator(callable_obj: F) -> F:
            return build_injected_wrapper(
                callable_obj,
                get_container=lambda: self,
                scope=scope,
                extractor=self._dependencies_extractor,
            )

        if func is None:
            return decorator
        return decorator(func)

    def _enter_call_scope(self, scope: str | None) -> AbstractContextManager[Any]:
        if scope is None:
            return nullcontext()
        return self.start_scope(scope)

    def _resolve_injected(self, injected: dict[str, Any], kwargs: dict[str, Any]) -> None:
        for name, dependency in injected.items():
            if name not in kwargs:
                kwargs[name] = self.resolve(dependency)


def build_injected_wrapper(
    func: F,
    *,
    get_container: Callable[[], Container],
    scope: str | None,
    extractor: DependenciesExtractor,
) -> F:
    """Wrap ``func`` so its ``Injected[...]`` parameters are resolved on every call.

    ``get_container`` is called once per call, so the container may be bound
    after the wrapper is built.
    """
    injected = extractor.get_injected_dependencies(func)

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def _async_injected(*args: Any, **kwargs: Any) -> Any:
            container = get_container()
            with container._enter_call_scope(scope):  # noqa: SLF001
                container._resolve_injected(injected, kwargs)  # noqa: SLF001
                return await func(*args, **kwargs)

        wrapper: Any = _async_injected
    else:

        @functools.wraps(func)
        def _sync_injected(*args: Any, **kwargs: Any) -> Any:
            container = get_container()
            with container._enter_call_scope(scope):  # noqa: SLF001
                container._resolve_injected(injected, kwargs)  # noqa: SLF001
                return func(*args, **kwargs)

        wrapper = _sync_injected

    wrapper.__signature__ = extractor.get_public_signature(func)
    setattr(wrapper, INJECTED_WRAPPER_ATTR, True)
    return wrapper  # type: ignore[no-any-return]
