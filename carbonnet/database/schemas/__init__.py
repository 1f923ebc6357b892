"""
SQLAlchemy database models (schemas).
"""
from carbonnet.database.schemas.activity import ActivityDBModel
from carbonnet.database.schemas.emission_factor import EmissionFactorDBModel
from carbonnet.database.schemas.report import ReportDBModel

__all__ = [
    "ActivityDBModel",
    "EmissionFactorDBModel",
    "ReportDBModel",
]
