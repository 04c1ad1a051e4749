from enum import Enum
from typing import Annotated, TypeVar, get_args, get_origin


class Lifetime(str, Enum):
    """How long the container reuses an instance it has built."""

    TRANSIENT = "transient"
    """Built anew on every resolution."""

    SCOPED = "scoped"
    """Built once per scope; a request is one scope."""

    SINGLETON = "singleton"
    """Built once and kept for the life of the container."""


T = TypeVar("T")


class _InjectedMarker:
    def __repr__(self) -> str:
        return "Injected"


_INJECTED = _InjectedMarker()

Injected = Annotated[T, _INJECTED]
"""Marks a parameter of an ``inject``-decorated callable as supplied by the container.

``Injected[HomeController]`` is ``Annotated[HomeController, <marker>]``, so
type checkers see a plain ``HomeController``.
"""


def is_injected_annotation(hint: object) -> bool:
    """Return true when ``hint`` carries the ``Injected`` marker."""
    if get_origin(hint) is not Annotated:
        return False
    return any(arg is _INJECTED for arg in get_args(hint)[1:])


def strip_injected_annotation(hint: object) -> object:
    """Return ``hint`` without the ``Injected`` marker."""
    base, *metadata = get_args(hint)
    rest = tuple(arg for arg in metadata if arg is not _INJECTED)
    if not rest:
        return base
    return Annotated[(base, *rest)]
