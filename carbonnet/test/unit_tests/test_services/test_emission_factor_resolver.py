"""
Service tests for the emission factor resolver.
"""
import uuid
from datetime import date
from decimal import Decimal

import pytest

from carbonnet.pydantic_models.emission_factor import EmissionFactor
from carbonnet.services.calculators.default_factors import DefaultFactorTable
from carbonnet.services.exceptions import FactorLookupError, FactorNotFound
from carbonnet.services.selectors.emission_factor_resolver import (
    EmissionFactorResolver,
    InMemoryFactorStore,
)
from carbonnet.utils.constants import (
    ActivityCategory,
    FallbackReason,
    ResolutionTier,
)

INSTITUTION_ID = uuid.UUID("6f1c1d6e-3a0e-4b8a-9f59-3c1a4c1b2d01")


def make_factor(value, institution_id=None, valid_from=date(2024, 1, 1), **kwargs):
    fields = {
        "id": uuid.uuid4(),
        "category": ActivityCategory.ELECTRICITY,
        "subcategory_key": "grid",
        "factor_value": Decimal(value),
        "unit": "kWh",
        "scope": 2,
        "source": "CUSTOM",
        "valid_from": valid_from,
        "institution_id": institution_id,
    }
    fields.update(kwargs)
    return EmissionFactor(**fields)


class FailingStore:
    async def find_applicable(self, category, subcategory_key, institution_id, as_of):
        raise ConnectionError("factor store unavailable")


@pytest.mark.asyncio
async def test_institution_factor_wins_over_global():
    store = InMemoryFactorStore(
        [make_factor("0.7"), make_factor("0.4", institution_id=INSTITUTION_ID)]
    )
    resolver = EmissionFactorResolver(store)

    resolved = await resolver.resolve_with_fallback(
        "electricity", "grid", INSTITUTION_ID, date(2024, 6, 1)
    )

    assert resolved.factor_value == Decimal("0.4")
    assert resolved.tier == ResolutionTier.INSTITUTION
    assert resolved.fallback_reason is None


@pytest.mark.asyncio
async def test_global_factor_used_when_institution_has_none():
    store = InMemoryFactorStore([make_factor("0.7")])
    resolver = EmissionFactorResolver(store)

    resolved = await resolver.resolve_with_fallback(
        ActivityCategory.ELECTRICITY, "grid", INSTITUTION_ID, date(2024, 6, 1)
    )

    assert resolved.factor_value == Decimal("0.7")
    assert resolved.tier == ResolutionTier.GLOBAL


@pytest.mark.asyncio
async def test_latest_valid_from_wins():
    store = InMemoryFactorStore(
        [
            make_factor("0.9", valid_from=date(2023, 1, 1)),
            make_factor("0.6", valid_from=date(2024, 3, 1)),
            make_factor("0.5", valid_from=date(2025, 1, 1)),
        ]
    )
    resolver = EmissionFactorResolver(store)

    resolved = await resolver.resolve_with_fallback(
        "electricity", "grid", None, date(2024, 6, 1)
    )

    assert resolved.factor_value == Decimal("0.6")


@pytest.mark.asyncio
async def test_expired_and_inactive_factors_are_ignored():
    store = InMemoryFactorStore(
        [
            make_factor("0.9", valid_until=date(2024, 1, 31)),
            make_factor("0.8", is_active=False),
        ]
    )
    resolver = EmissionFactorResolver(store)

    resolved = await resolver.resolve_with_fallback(
        "electricity", "grid", None, date(2024, 6, 1)
    )

    assert resolved.tier == ResolutionTier.DEFAULT
    assert resolved.factor_value == Decimal("0.82")
    assert resolved.fallback_reason == FallbackReason.NOT_FOUND


@pytest.mark.asyncio
async def test_resolve_raises_when_no_stored_factor():
    resolver = EmissionFactorResolver(InMemoryFactorStore())

    with pytest.raises(FactorNotFound):
        await resolver.resolve("electricity", "grid", None, date(2024, 6, 1))


@pytest.mark.asyncio
async def test_unknown_key_uses_category_fallback():
    resolver = EmissionFactorResolver(InMemoryFactorStore())

    resolved = await resolver.resolve_with_fallback(
        "transportation", "hovercraft", None, date(2024, 6, 1)
    )

    assert resolved.factor_value == Decimal("0.1")
    assert resolved.source == "DEFRA"
    assert resolved.version == "2023"


@pytest.mark.asyncio
async def test_lookup_error_degrades_to_default_table():
    resolver = EmissionFactorResolver(FailingStore())

    resolved = await resolver.resolve_with_fallback(
        "electricity", "grid", None, date(2024, 6, 1)
    )

    assert resolved.factor_value == Decimal("0.82")
    assert resolved.fallback_reason == FallbackReason.LOOKUP_ERROR


@pytest.mark.asyncio
async def test_lookup_error_propagates_when_configured():
    resolver = EmissionFactorResolver(FailingStore(), propagate_lookup_errors=True)

    with pytest.raises(FactorLookupError) as exc_info:
        await resolver.resolve_with_fallback("electricity", "grid", None, date(2024, 6, 1))

    assert isinstance(exc_info.value.original_exception, ConnectionError)


@pytest.mark.asyncio
async def test_injected_default_table_is_used():
    defaults = DefaultFactorTable(version="custom", generic_factor=Decimal("1.5"))
    resolver = EmissionFactorResolver(InMemoryFactorStore(), defaults=defaults)

    resolved = await resolver.resolve_with_fallback("food", "veg", None, date(2024, 6, 1))

    assert resolved.factor_value == Decimal("1.5")
    assert resolved.version == "custom"
    assert resolved.source == "ESTIMATED"
