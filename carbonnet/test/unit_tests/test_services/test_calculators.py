"""
Service tests for the per-activity emission formulas.
"""
import uuid
from datetime import date
from decimal import Decimal

import pytest

from carbonnet.pydantic_models.activity import ActivityRecord
from carbonnet.pydantic_models.emission_factor import EmissionFactor
from carbonnet.services.calculators.activity_calculator import (
    EmissionCalculator,
    subcategory_key_for,
)
from carbonnet.services.selectors.emission_factor_resolver import (
    EmissionFactorResolver,
    InMemoryFactorStore,
)
from carbonnet.utils.constants import ResolutionTier


def make_record(category, **details):
    return ActivityRecord(
        id=str(uuid.uuid4()),
        user_id="user-1",
        category=category,
        activity_date=date(2024, 1, 10),
        **details,
    )


@pytest.fixture
def calculator():
    return EmissionCalculator(EmissionFactorResolver(InMemoryFactorStore()))


@pytest.mark.parametrize(
    "category, details, expected_key",
    [
        ("transportation", {"transportation": {"mode": "car", "fuel_type": "petrol"}}, "car_petrol"),
        ("transportation", {"transportation": {"mode": "Bike", "fuel_type": "none"}}, "bike"),
        ("transportation", {"transportation": {"mode": "train"}}, "train"),
        ("electricity", {"electricity": {"consumption_kwh": 1}}, "grid"),
        ("food", {"food": {"diet_type": "non-veg"}}, "non_veg"),
        ("waste", {"waste": {"quantity_kg": 1}}, "general"),
        ("water", {"water": {"consumption_liters": 1}}, "consumption"),
        ("paper", {"quantity": 3}, None),
        ("electricity", {}, None),
    ],
)
def test_subcategory_key_for(category, details, expected_key):
    assert subcategory_key_for(make_record(category, **details)) == expected_key


@pytest.mark.asyncio
async def test_transportation_distance_times_factor(calculator):
    record = make_record(
        "transportation",
        transportation={"mode": "car", "distance_km": "20", "fuel_type": "petrol"},
    )

    result = await calculator.compute(record)

    assert result.total_kg == Decimal("3.420")
    assert result.provenance.factor_value == Decimal("0.171")
    assert result.provenance.source_id == "DEFRA"


@pytest.mark.asyncio
async def test_transportation_shared_trip_is_split_per_passenger(calculator):
    record = make_record(
        "transportation",
        transportation={"mode": "bus", "distance_km": "30", "passengers": 3},
    )

    result = await calculator.compute(record)

    assert result.total_kg == Decimal("0.890")


@pytest.mark.asyncio
async def test_transportation_without_distance_is_zero(calculator):
    record = make_record("transportation", transportation={"mode": "car", "fuel_type": "diesel"})

    result = await calculator.compute(record)

    assert result.total_kg == Decimal("0.000")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "source, expected",
    [(None, Decimal("82.000")), ("grid", Decimal("82.000")), ("solar", Decimal("4.800"))],
)
async def test_electricity_consumption_times_factor(calculator, source, expected):
    record = make_record("electricity", electricity={"consumption_kwh": "100", "source": source})

    result = await calculator.compute(record)

    assert result.total_kg == expected


@pytest.mark.asyncio
async def test_food_meals_plus_food_waste(calculator):
    record = make_record(
        "food", food={"diet_type": "non-veg", "meal_count": 2, "waste_kg": "1"}
    )

    result = await calculator.compute(record)

    # 2 x 5.5 + 1 x 0.3
    assert result.total_kg == Decimal("11.300")


@pytest.mark.asyncio
async def test_food_counts_at_least_one_meal(calculator):
    record = make_record("food", food={"diet_type": "vegan", "meal_count": 0})

    result = await calculator.compute(record)

    assert result.total_kg == Decimal("1.500")


@pytest.mark.asyncio
async def test_recycled_waste_keeps_thirty_percent(calculator):
    landfill = make_record("waste", waste={"type": "plastic", "quantity_kg": "2"})
    recycled = make_record(
        "waste", waste={"type": "plastic", "quantity_kg": "2", "recycled": True}
    )

    assert (await calculator.compute(landfill)).total_kg == Decimal("12.000")
    assert (await calculator.compute(recycled)).total_kg == Decimal("3.600")


@pytest.mark.asyncio
async def test_water_consumption(calculator):
    record = make_record("water", water={"consumption_liters": "1000"})

    result = await calculator.compute(record)

    assert result.total_kg == Decimal("0.300")


@pytest.mark.asyncio
async def test_generic_category_uses_quantity(calculator):
    record = make_record("paper", quantity="10", unit="ream")

    result = await calculator.compute(record)

    assert result.total_kg == Decimal("5.000")
    assert result.provenance.source_id == "ESTIMATED"
    assert result.provenance.tier == ResolutionTier.DEFAULT


@pytest.mark.asyncio
async def test_missing_details_yield_zero_with_default_provenance(calculator):
    record = make_record("electricity")

    result = await calculator.compute(record)

    assert result.total_kg == Decimal("0.000")
    assert result.provenance.tier == ResolutionTier.DEFAULT


@pytest.mark.asyncio
async def test_result_is_rounded_half_up_to_grams():
    store = InMemoryFactorStore(
        [
            EmissionFactor(
                category="electricity",
                subcategory_key="grid",
                factor_value=Decimal("0.0025"),
                unit="kWh",
                scope=2,
                source="CUSTOM",
                valid_from=date(2024, 1, 1),
            )
        ]
    )
    calculator = EmissionCalculator(EmissionFactorResolver(store))
    record = make_record("electricity", electricity={"consumption_kwh": "1"})

    result = await calculator.compute(record)

    assert result.total_kg == Decimal("0.003")
    assert result.provenance.tier == ResolutionTier.GLOBAL
    assert result.provenance.version == "2024"
