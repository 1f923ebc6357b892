"""
Per-activity emissions calculator - async version.

Applies the category specific formulas to an activity using a factor
resolved through EmissionFactorResolver.
"""

import logging
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from carbonnet.pydantic_models.activity import ActivityRecord, EmissionFactorProvenance
from carbonnet.services.calculators.unit_converter import UnitConverter
from carbonnet.services.selectors.emission_factor_resolver import EmissionFactorResolver
from carbonnet.utils.constants import (
    GENERIC_CATEGORIES,
    ActivityCategory,
    ResolutionTier,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class EmissionComputation(BaseModel):
    """Result of computing one activity's emissions."""

    total_kg: Decimal
    provenance: EmissionFactorProvenance


def subcategory_key_for(record: ActivityRecord) -> Optional[str]:
    """
    Build the factor lookup key for an activity.

    Returns None for categories that use the generic formula or when the
    category's detail variant is missing.
    """
    category = record.category

    if category == ActivityCategory.TRANSPORTATION:
        details = record.transportation
        if details is None or not details.mode:
            return None
        fuel = (details.fuel_type or "").strip().lower()
        mode = details.mode.strip().lower()
        return f"{mode}_{fuel}" if fuel and fuel != "none" else mode

    if category == ActivityCategory.ELECTRICITY:
        if record.electricity is None:
            return None
        return (record.electricity.source or "grid").strip().lower()

    if category == ActivityCategory.FOOD:
        if record.food is None or not record.food.diet_type:
            return None
        return record.food.diet_type.strip().lower().replace("-", "_")

    if category == ActivityCategory.WASTE:
        if record.waste is None:
            return None
        return (record.waste.type or "general").strip().lower()

    if category == ActivityCategory.WATER:
        return "consumption" if record.water is not None else None

    return None


class EmissionCalculator:
    """
    Computes CO2e (kg) for a single activity.

    Formulas:
        transportation: distance_km * factor, split across passengers
        electricity:    consumption_kwh * factor
        food:           factor * max(meal_count, 1) + waste_kg * food waste factor
        waste:          quantity_kg * factor, times the recycling multiplier if recycled
        water:          consumption_liters * factor
        generic:        quantity * generic factor
    """

    def __init__(self, resolver: EmissionFactorResolver):
        """
        Initialize calculator.

        Args:
            resolver: Factor resolver (also supplies the default table)
        """
        self.resolver = resolver
        self.defaults = resolver.defaults

    async def compute(self, record: ActivityRecord) -> EmissionComputation:
        """
        Calculate CO2e emissions for an activity.

        Args:
            record: Activity to compute

        Returns:
            EmissionComputation with the total rounded to 3 decimals

        Example:
            >>> record = ActivityRecord(
            ...     id="a1", user_id="u1", category="electricity",
            ...     activity_date=date(2024, 1, 5),
            ...     electricity={"consumption_kwh": 100, "source": "grid"},
            ... )
            >>> result = await calculator.compute(record)
            >>> result.total_kg
            Decimal('82.000')
        """
        category = ActivityCategory(record.category)

        if category in GENERIC_CATEGORIES:
            total = self._generic(record)
            provenance = EmissionFactorProvenance(
                factor_value=self.defaults.generic_factor,
                source_id=self.defaults.generic_source,
                version=self.defaults.version,
                tier=ResolutionTier.DEFAULT,
            )
        else:
            key = subcategory_key_for(record)
            factor = await self.resolver.resolve_with_fallback(
                category, key, record.institution_id, record.activity_date
            )
            total = self._apply_formula(category, record, factor.factor_value)
            provenance = EmissionFactorProvenance(
                factor_value=factor.factor_value,
                source_id=factor.source,
                version=factor.version,
                factor_id=factor.factor_id,
                tier=factor.tier,
                fallback_reason=factor.fallback_reason,
            )

        total_kg = UnitConverter.round_emission(total)
        logger.debug(
            f"Computed {total_kg} kg CO2e for {category.value} activity {record.id} "
            f"(factor {provenance.factor_value}, tier {provenance.tier.value})"
        )
        return EmissionComputation(total_kg=total_kg, provenance=provenance)

    def _apply_formula(
        self, category: ActivityCategory, record: ActivityRecord, factor: Decimal
    ) -> Decimal:
        if category == ActivityCategory.TRANSPORTATION:
            return self._transportation(record, factor)
        if category == ActivityCategory.ELECTRICITY:
            return self._electricity(record, factor)
        if category == ActivityCategory.FOOD:
            return self._food(record, factor)
        if category == ActivityCategory.WASTE:
            return self._waste(record, factor)
        if category == ActivityCategory.WATER:
            return self._water(record, factor)
        return self._generic(record)

    @staticmethod
    def _transportation(record: ActivityRecord, factor: Decimal) -> Decimal:
        details = record.transportation
        if details is None:
            return ZERO
        distance = UnitConverter.normalize_number(details.distance_km)
        if distance <= 0:
            return ZERO

        emissions = distance * factor
        # Per-capita allocation for shared trips
        if details.passengers and details.passengers > 1:
            emissions = emissions / Decimal(details.passengers)
        return emissions

    @staticmethod
    def _electricity(record: ActivityRecord, factor: Decimal) -> Decimal:
        details = record.electricity
        if details is None:
            return ZERO
        consumption = UnitConverter.normalize_number(details.consumption_kwh)
        if consumption <= 0:
            return ZERO
        return consumption * factor

    def _food(self, record: ActivityRecord, factor: Decimal) -> Decimal:
        details = record.food
        if details is None:
            return ZERO
        emissions = factor * Decimal(max(details.meal_count, 1))
        waste = UnitConverter.normalize_number(details.waste_kg)
        if waste > 0:
            emissions += waste * self.defaults.food_waste_factor
        return emissions

    def _waste(self, record: ActivityRecord, factor: Decimal) -> Decimal:
        details = record.waste
        if details is None:
            return ZERO
        quantity = UnitConverter.normalize_number(details.quantity_kg)
        if quantity <= 0:
            return ZERO
        emissions = quantity * factor
        if details.recycled:
            emissions = emissions * self.defaults.recycling_multiplier
        return emissions

    @staticmethod
    def _water(record: ActivityRecord, factor: Decimal) -> Decimal:
        details = record.water
        if details is None:
            return ZERO
        consumption = UnitConverter.normalize_number(details.consumption_liters)
        if consumption <= 0:
            return ZERO
        return consumption * factor

    def _generic(self, record: ActivityRecord) -> Decimal:
        quantity = UnitConverter.normalize_number(record.quantity)
        return quantity * self.defaults.generic_factor
