"""
Main emission calculation service - async version.

Pipeline stage invoked by the activity handlers: fills the derived
emission figure and provenance on activity records.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable

from carbonnet.core.config import get_environment_config
from carbonnet.pydantic_models.activity import ActivityRecord
from carbonnet.services.calculators.activity_calculator import EmissionCalculator
from carbonnet.services.calculators.default_factors import DefaultFactorTable
from carbonnet.services.selectors.emission_factor_resolver import (
    EmissionFactorResolver,
    FactorStore,
)

logger = logging.getLogger(__name__)

# Fields whose change invalidates a stored emission figure
QUANTITY_FIELDS = (
    "category",
    "subcategory",
    "transportation",
    "electricity",
    "food",
    "waste",
    "water",
    "quantity",
    "unit",
    "activity_date",
    "institution_id",
)


def get_calculation_settings_from_config() -> dict[str, Any]:
    """
    Get emission calculation settings from the environment's config file.

    Returns:
        dict: ``propagate_lookup_errors`` and ``default_factor_version``
    """
    try:
        section = get_environment_config().data.get("emission_calculation", {})
    except FileNotFoundError as e:
        logger.warning(f"Failed to read emission_calculation config: {e}. Using defaults")
        section = {}
    return {
        "propagate_lookup_errors": bool(section.get("propagate_lookup_errors", False)),
        "default_factor_version": str(section.get("default_factor_version", "2023")),
    }


class EmissionCalculationError(Exception):
    """
    Exception raised when emission calculation fails.

    Provides context about which activity failed and why, preserving
    the original exception if one was caught.
    """

    def __init__(
        self, activity, message: str, original_exception: Exception | None = None
    ):
        self.activity = activity
        self.activity_id = getattr(activity, "id", None)
        self.category = getattr(activity, "category", "unknown")
        self.original_exception = original_exception
        self.message = message

        error_msg = (
            f"Failed to calculate emissions for {getattr(self.category, 'value', self.category)} "
            f"activity {self.activity_id}: {message}"
        )

        if original_exception:
            error_msg += (
                f"\nCaused by: {type(original_exception).__name__}: "
                f"{original_exception}"
            )

        super().__init__(error_msg)


class EmissionCalculationService:
    """
    Orchestrator for per-activity emission calculations.

    Stateless apart from its collaborators; one instance can serve many
    requests.
    """

    def __init__(self, calculator: EmissionCalculator):
        self.calculator = calculator

    @classmethod
    def from_store(
        cls,
        store: FactorStore,
        propagate_lookup_errors: bool | None = None,
        defaults: DefaultFactorTable | None = None,
    ) -> "EmissionCalculationService":
        """
        Build the service over a factor store, reading unset options from config.

        Example:
            >>> service = EmissionCalculationService.from_store(
            ...     EmissionFactorRepository(session)
            ... )
            >>> record = await service.apply(record)
        """
        if propagate_lookup_errors is None or defaults is None:
            settings = get_calculation_settings_from_config()
            if propagate_lookup_errors is None:
                propagate_lookup_errors = settings["propagate_lookup_errors"]
            if defaults is None:
                defaults = DefaultFactorTable.standard(settings["default_factor_version"])

        resolver = EmissionFactorResolver(
            store, defaults=defaults, propagate_lookup_errors=propagate_lookup_errors
        )
        return cls(EmissionCalculator(resolver))

    async def apply(self, record: ActivityRecord) -> ActivityRecord:
        """
        Compute emissions for a record.

        Returns:
            A copy of the record with carbon_emission_kg and provenance filled
        """
        computation = await self.calculator.compute(record)
        return record.model_copy(
            update={
                "carbon_emission_kg": computation.total_kg,
                "emission_factor_provenance": computation.provenance,
            }
        )

    async def recalculate_if_changed(
        self, previous: ActivityRecord, updated: ActivityRecord
    ) -> ActivityRecord:
        """
        Recompute only when a quantity-bearing field changed.

        Otherwise the previous emission figure and provenance are carried over
        to the updated record.
        """
        changed = [
            field
            for field in QUANTITY_FIELDS
            if getattr(previous, field) != getattr(updated, field)
        ]
        if not changed:
            logger.debug(f"Activity {updated.id} unchanged in quantity fields, keeping emission")
            return updated.model_copy(
                update={
                    "carbon_emission_kg": previous.carbon_emission_kg,
                    "emission_factor_provenance": previous.emission_factor_provenance,
                }
            )

        logger.info(f"Recalculating activity {updated.id}, changed fields: {', '.join(changed)}")
        return await self.apply(updated)

    async def calculate_batch(
        self, records: Iterable[ActivityRecord], fail_fast: bool = False
    ) -> dict[str, Any]:
        """
        Calculate emissions for multiple activities (batch processing).

        Args:
            records: Activity records (mixed categories allowed)
            fail_fast: If True, raise EmissionCalculationError on the first failure

        Returns:
            Dictionary with results, statistics, and errors
        """
        records = list(records)
        logger.info(f"Starting batch calculation for {len(records)} activities")

        results = []
        errors = []
        stats_by_category: dict[str, dict[str, Any]] = {}

        for record in records:
            try:
                result = await self.apply(record)
            except Exception as e:
                if fail_fast:
                    raise EmissionCalculationError(
                        record, "Unexpected error during calculation", original_exception=e
                    ) from e
                logger.error(f"Error processing activity {record.id}: {e}", exc_info=True)
                errors.append(
                    {
                        "activity_id": str(record.id),
                        "category": record.category.value,
                        "error": str(e),
                    }
                )
                continue

            results.append(result)
            stats = stats_by_category.setdefault(
                result.category.value, {"count": 0, "total_co2e_kg": Decimal("0")}
            )
            stats["count"] += 1
            stats["total_co2e_kg"] += result.carbon_emission_kg

        total_kg = sum((r.carbon_emission_kg for r in results), Decimal("0"))
        success_rate = (len(results) / len(records) * 100) if records else 0

        summary = {
            "results": results,
            "statistics": {
                "total_activities": len(records),
                "total_processed": len(results),
                "total_errors": len(errors),
                "success_rate": f"{success_rate:.2f}%",
                "total_co2e_kg": total_kg,
                "by_category": stats_by_category,
            },
            "errors": errors,
        }

        logger.info(
            f"Batch calculation complete: {len(results)}/{len(records)} successful, "
            f"{total_kg} kg CO2e total"
        )
        return summary
