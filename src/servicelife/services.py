"""Identifier services registered under the three lifetimes.

The three variants behave identically; only their registered lifetime
differs, which is what the index report makes visible.
"""

from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable


@runtime_checkable
class IdentifierService(Protocol):
    """A service exposing an identifier fixed at construction."""

    def get_identifier(self) -> str:
        """Return the identifier in canonical UUID string form."""
        ...


class GuidService:
    """Generates a random UUID when constructed and returns it unchanged."""

    def __init__(self) -> None:
        self._id = uuid.uuid4()

    @property
    def id(self) -> uuid.UUID:
        return self._id

    def get_identifier(self) -> str:
        return str(self._id)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id})"


class TransientGuidService(GuidService):
    """Identifier service registered with ``Lifetime.TRANSIENT``."""


class ScopedGuidService(GuidService):
    """Identifier service registered with ``Lifetime.SCOPED``."""


class SingletonGuidService(GuidService):
    """Identifier service registered with ``Lifetime.SINGLETON``."""
