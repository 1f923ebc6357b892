"""
Database repositories for data access layer.

Provides clean abstraction over database operations following repository pattern.
"""
from carbonnet.database.repositories.activity import ActivityRepository
from carbonnet.database.repositories.base import BaseRepository
from carbonnet.database.repositories.emission_factor import EmissionFactorRepository
from carbonnet.database.repositories.report import ReportRepository

__all__ = [
    "ActivityRepository",
    "BaseRepository",
    "EmissionFactorRepository",
    "ReportRepository",
]
