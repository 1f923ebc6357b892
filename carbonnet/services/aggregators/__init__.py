from carbonnet.services.aggregators.emission_aggregator import (
    ReportAggregator,
    calculate_reduction_percentage,
    estimate_per_capita_emissions,
)

__all__ = [
    "ReportAggregator",
    "calculate_reduction_percentage",
    "estimate_per_capita_emissions",
]
