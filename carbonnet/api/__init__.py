"""
API routers module.
"""
from carbonnet.api.activities import router as activities_router
from carbonnet.api.factors import router as factors_router
from carbonnet.api.reports import router as reports_router
from carbonnet.api.statistics import router as statistics_router

__all__ = [
    "activities_router",
    "factors_router",
    "reports_router",
    "statistics_router",
]
