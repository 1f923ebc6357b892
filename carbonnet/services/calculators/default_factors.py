"""
Default emission factors used when the factor store has no match.

The table is a versioned value object passed into the resolver, so tests
and institutions can substitute their own factor sets.
"""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from carbonnet.pydantic_models.emission_factor import ResolvedFactor
from carbonnet.utils.constants import (
    ActivityCategory,
    FactorSource,
    FallbackReason,
    ResolutionTier,
    Scope,
)


class CategoryDefaults(BaseModel):
    """Default factors for one activity category."""

    model_config = ConfigDict(frozen=True)

    factors: dict[str, Decimal] = Field(default_factory=dict)
    fallback: Decimal = Field(..., description="Used when the key is not in factors")
    unit: str
    scope: int
    source: FactorSource


class DefaultFactorTable(BaseModel):
    """
    Versioned table of default factors plus the fixed formula constants.

    Attributes:
        version: Version recorded in provenance for default factors
        categories: Per-category default factors
        generic_factor: kg CO2e per unit for categories without a formula
        food_waste_factor: kg CO2e per kg of food waste
        recycling_multiplier: Share of waste emissions left after recycling
    """

    model_config = ConfigDict(frozen=True)

    version: str = "2023"
    categories: dict[ActivityCategory, CategoryDefaults] = Field(default_factory=dict)
    generic_factor: Decimal = Decimal("0.5")
    generic_source: str = "ESTIMATED"
    food_waste_factor: Decimal = Decimal("0.3")
    recycling_multiplier: Decimal = Decimal("0.3")

    def lookup(
        self,
        category: ActivityCategory,
        subcategory_key: Optional[str],
        fallback_reason: FallbackReason = FallbackReason.NOT_FOUND,
    ) -> ResolvedFactor:
        """
        Return the default factor for a category/key pair.

        Unknown keys use the category fallback; categories without an entry
        use the generic factor.
        """
        defaults = self.categories.get(ActivityCategory(category))
        if defaults is None:
            return ResolvedFactor(
                factor_value=self.generic_factor,
                unit="unit",
                scope=Scope.SCOPE_3,
                source=self.generic_source,
                version=self.version,
                tier=ResolutionTier.DEFAULT,
                fallback_reason=fallback_reason,
            )

        value = defaults.factors.get(subcategory_key or "", defaults.fallback)
        return ResolvedFactor(
            factor_value=value,
            unit=defaults.unit,
            scope=defaults.scope,
            source=defaults.source.value,
            version=self.version,
            tier=ResolutionTier.DEFAULT,
            fallback_reason=fallback_reason,
        )

    def iter_factors(self):
        """Yield (category, key, value, defaults) for every listed factor."""
        for category, defaults in self.categories.items():
            for key, value in defaults.factors.items():
                yield category, key, value, defaults

    @classmethod
    def standard(cls, version: str = "2023") -> "DefaultFactorTable":
        """The built-in DEFRA/IPCC/EPA based table."""
        return cls(version=version, categories=_STANDARD_CATEGORIES)


def _d(value: str) -> Decimal:
    return Decimal(value)


_STANDARD_CATEGORIES = {
    ActivityCategory.TRANSPORTATION: CategoryDefaults(
        factors={
            "car_petrol": _d("0.171"),
            "car_diesel": _d("0.156"),
            "car_cng": _d("0.142"),
            "car_electric": _d("0.053"),
            "bike": _d("0.114"),
            "bus": _d("0.089"),
            "train": _d("0.041"),
            "metro": _d("0.028"),
            "rickshaw": _d("0.065"),
            "flight_domestic": _d("0.255"),
            "flight_international": _d("0.195"),
        },
        fallback=_d("0.1"),
        unit="km",
        scope=Scope.SCOPE_1,
        source=FactorSource.DEFRA,
    ),
    ActivityCategory.ELECTRICITY: CategoryDefaults(
        factors={
            "grid": _d("0.82"),
            "solar": _d("0.048"),
            "wind": _d("0.011"),
        },
        fallback=_d("0.82"),
        unit="kWh",
        scope=Scope.SCOPE_2,
        source=FactorSource.IPCC,
    ),
    ActivityCategory.FOOD: CategoryDefaults(
        factors={
            "veg": _d("2.0"),
            "non_veg": _d("5.5"),
            "vegan": _d("1.5"),
        },
        fallback=_d("2.0"),
        unit="meal",
        scope=Scope.SCOPE_3,
        source=FactorSource.CUSTOM,
    ),
    ActivityCategory.WASTE: CategoryDefaults(
        factors={
            "general": _d("0.45"),
            "plastic": _d("6.0"),
            "paper": _d("0.9"),
            "food": _d("0.3"),
            "electronic": _d("2.5"),
        },
        fallback=_d("0.45"),
        unit="kg",
        scope=Scope.SCOPE_3,
        source=FactorSource.EPA,
    ),
    ActivityCategory.WATER: CategoryDefaults(
        factors={"consumption": _d("0.0003")},
        fallback=_d("0.0003"),
        unit="liter",
        scope=Scope.SCOPE_3,
        source=FactorSource.CUSTOM,
    ),
}
