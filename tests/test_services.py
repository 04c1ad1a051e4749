"""Tests for the identifier services."""

import uuid

import pytest

from servicelife.services import (
    GuidService,
    IdentifierService,
    ScopedGuidService,
    SingletonGuidService,
    TransientGuidService,
)

VARIANTS = [TransientGuidService, ScopedGuidService, SingletonGuidService]


@pytest.mark.parametrize("variant", VARIANTS)
class TestGuidServiceVariants:
    def test_identifier_is_canonical_uuid(self, variant: type[GuidService]) -> None:
        service = variant()

        identifier = service.get_identifier()

        assert str(uuid.UUID(identifier)) == identifier
        assert uuid.UUID(identifier).version == 4

    def test_identifier_is_stable(self, variant: type[GuidService]) -> None:
        service = variant()

        assert service.get_identifier() == service.get_identifier()
        assert service.get_identifier() == str(service.id)

    def test_each_instance_has_its_own_identifier(self, variant: type[GuidService]) -> None:
        assert variant().get_identifier() != variant().get_identifier()

    def test_fulfills_identifier_capability(self, variant: type[GuidService]) -> None:
        assert isinstance(variant(), IdentifierService)


def test_variants_are_distinct_types() -> None:
    assert len(set(VARIANTS)) == 3
    assert all(issubclass(variant, GuidService) for variant in VARIANTS)


def test_repr_includes_identifier() -> None:
    service = ScopedGuidService()

    assert repr(service) == f"ScopedGuidService(id={service.get_identifier()})"
