"""FastAPI routing that opens one container scope per request."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from fastapi.routing import APIRoute

from servicelife.container import INJECTED_WRAPPER_ATTR
from servicelife.container_context import container_context
from servicelife.exceptions import DependencyExtractionError
from servicelife.types import is_injected_annotation

if TYPE_CHECKING:
    from servicelife.container import Container

REQUEST_SCOPE = "request"


def _needs_injection(endpoint: Callable[..., Any]) -> bool:
    if getattr(endpoint, INJECTED_WRAPPER_ATTR, False):
        return False
    try:
        annotations = inspect.get_annotations(endpoint, eval_str=True)
    except (TypeError, NameError) as e:
        raise DependencyExtractionError(endpoint, e) from e
    annotations.pop("return", None)
    return any(is_injected_annotation(hint) for hint in annotations.values())


class InjectingRoute(APIRoute):
    """Route whose ``Injected[...]`` endpoint parameters come from the container.

    Each call runs in a fresh ``"request"`` scope of the container bound to
    ``container_context``, so a scoped service is shared within one request
    and rebuilt for the next. Endpoints without injected parameters are left
    untouched.
    """

    def __init__(self, path: str, endpoint: Callable[..., Any], **kwargs: Any) -> None:
        if _needs_injection(endpoint):
            endpoint = container_context.inject(endpoint, scope=REQUEST_SCOPE)
        super().__init__(path, endpoint, **kwargs)


def setup_servicelife(app: FastAPI, container: Container | None = None) -> None:
    """Make routes added to ``app`` afterwards inject per request.

    ``container``, when given, is bound to ``container_context`` and exposed as
    ``app.state.container``. Without it the container bound elsewhere is used
    at request time.
    """
    if container is not None:
        container_context.set_current(container)
        app.state.container = container
    app.router.route_class = InjectingRoute
