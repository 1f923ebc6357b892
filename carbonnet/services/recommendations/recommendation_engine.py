"""
Rule-based emission reduction recommendations.
"""
import logging
from decimal import Decimal
from typing import Any, Mapping

from carbonnet.utils.constants import ActivityCategory

logger = logging.getLogger(__name__)

TRANSPORTATION_TIPS = (
    "Reduce transportation emissions: carpool, use public transit, or bike for short trips.",
    "Combine errands into a single trip and avoid peak-hour congestion.",
    "Consider switching to an electric or CNG vehicle for regular commutes.",
)

ELECTRICITY_TIPS = (
    "Lower electricity usage: switch to energy-efficient appliances and LED lighting.",
    "Turn off idle devices and unplug chargers when not in use.",
    "Explore rooftop solar or a renewable energy plan from your provider.",
)

FOOD_TIPS = (
    "Consider plant-forward meals a few days a week.",
    "Plan portions to reduce food waste.",
    "Prefer local and seasonal produce.",
)

WASTE_TIPS = (
    "Segregate waste at source and recycle paper, plastic and electronics.",
    "Compost food scraps and avoid single-use plastics.",
)

ENCOURAGEMENT = "Great job! Your emissions are within recommended limits. Keep it up!"


class RecommendationEngine:
    """
    Derives ordered reduction tips from per-category totals (kg CO2e).

    Rules are evaluated in a fixed order (transportation, electricity, food,
    waste); each rule fires when its category total is strictly above the
    threshold. When nothing fires a single encouragement message is returned.
    """

    def __init__(
        self,
        transportation_threshold_kg: Decimal | int | float = 100,
        electricity_threshold_kg: Decimal | int | float = 50,
        food_threshold_kg: Decimal | int | float = 30,
        waste_threshold_kg: Decimal | int | float = 0,
    ):
        self.rules = (
            (ActivityCategory.TRANSPORTATION, Decimal(str(transportation_threshold_kg)), TRANSPORTATION_TIPS),
            (ActivityCategory.ELECTRICITY, Decimal(str(electricity_threshold_kg)), ELECTRICITY_TIPS),
            (ActivityCategory.FOOD, Decimal(str(food_threshold_kg)), FOOD_TIPS),
            (ActivityCategory.WASTE, Decimal(str(waste_threshold_kg)), WASTE_TIPS),
        )

    @classmethod
    def from_config(cls, section: Mapping[str, Any] | None) -> "RecommendationEngine":
        """Build an engine from the ``[recommendations]`` config table."""
        section = section or {}
        keys = (
            "transportation_threshold_kg",
            "electricity_threshold_kg",
            "food_threshold_kg",
            "waste_threshold_kg",
        )
        return cls(**{key: section[key] for key in keys if key in section})

    def generate(self, category_totals: Mapping[str, Decimal | int | float]) -> list[str]:
        """
        Generate recommendations for the given category totals.

        Example:
            >>> RecommendationEngine().generate({"electricity": Decimal("82")})[0]
            'Lower electricity usage: switch to energy-efficient appliances and LED lighting.'
        """
        recommendations: list[str] = []
        for category, threshold, tips in self.rules:
            total = Decimal(str(category_totals.get(category.value, 0) or 0))
            if total > threshold:
                recommendations.extend(tips)

        if not recommendations:
            recommendations.append(ENCOURAGEMENT)

        logger.debug(f"Generated {len(recommendations)} recommendations")
        return recommendations
