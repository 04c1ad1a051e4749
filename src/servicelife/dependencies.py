import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, get_type_hints

from servicelife.exceptions import DependencyExtractionError
from servicelife.types import is_injected_annotation, strip_injected_annotation


@dataclass(frozen=True, slots=True)
class ParameterInfo:
    """Information about a constructor parameter."""

    service_key: Any
    has_default: bool


class DependenciesExtractor:
    """Extract type-hinted dependencies from classes and functions."""

    def __init__(self) -> None:
        # Cache for dependency extraction results
        self._deps_cache: dict[Any, dict[str, ParameterInfo]] = {}
        self._injected_deps_cache: dict[Any, dict[str, Any]] = {}
        self._public_signature_cache: dict[Any, inspect.Signature] = {}

    def get_dependencies(self, concrete_type: type[Any]) -> dict[str, ParameterInfo]:
        """Get all type-hinted constructor dependencies of a class."""
        cached = self._deps_cache.get(concrete_type)
        if cached is not None:
            return cached

        init_func = concrete_type.__init__
        if init_func is object.__init__:
            self._deps_cache[concrete_type] = {}
            return {}

        type_hints = self._get_type_hints(concrete_type, init_func)
        defaults = self._get_parameter_defaults(init_func)

        result = {
            name: ParameterInfo(service_key=hint, has_default=defaults.get(name, False))
            for name, hint in type_hints.items()
            if name != "return"
        }
        self._deps_cache[concrete_type] = result
        return result

    def get_injected_dependencies(self, func: Callable[..., Any]) -> dict[str, Any]:
        """Get only the parameters of ``func`` marked with ``Injected[...]``."""
        cached = self._injected_deps_cache.get(func)
        if cached is not None:
            return cached

        type_hints = self._get_type_hints(func, func)
        result = {
            name: strip_injected_annotation(hint)
            for name, hint in type_hints.items()
            if name != "return" and is_injected_annotation(hint)
        }
        self._injected_deps_cache[func] = result
        return result

    def get_public_signature(self, func: Callable[..., Any]) -> inspect.Signature:
        """Build the signature of ``func`` without its injected parameters.

        Annotations of the remaining parameters are evaluated, so frameworks
        inspecting the wrapper never need the original module's globals.
        """
        cached = self._public_signature_cache.get(func)
        if cached is not None:
            return cached

        injected = self.get_injected_dependencies(func)
        type_hints = self._get_type_hints(func, func)
        original_sig = inspect.signature(func)
        new_params = [
            param.replace(annotation=type_hints.get(name, param.annotation))
            for name, param in original_sig.parameters.items()
            if name not in injected
        ]
        result = original_sig.replace(
            parameters=new_params,
            return_annotation=type_hints.get("return", original_sig.return_annotation),
        )
        self._public_signature_cache[func] = result
        return result

    def _get_type_hints(self, service_key: Any, func: Any) -> dict[str, Any]:
        try:
            return get_type_hints(func, include_extras=True)
        except (TypeError, NameError) as e:
            raise DependencyExtractionError(service_key, e) from e

    def _get_parameter_defaults(self, func: Any) -> dict[str, bool]:
        try:
            sig = inspect.signature(func)
        except (ValueError, TypeError):
            return {}

        # Variadic parameters never need a value
        return {
            name: param.default is not inspect.Parameter.empty
            or param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
            for name, param in sig.parameters.items()
            if name != "self"
        }
