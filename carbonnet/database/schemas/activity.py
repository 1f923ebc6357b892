"""
Activity SQLAlchemy model.

One table for every category; the category specific details are stored
as JSON columns, one per detail variant.
"""
import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Index, Numeric, String, Text, Uuid

from carbonnet.database import Base


class ActivityDBModel(Base):
    """
    Carbon emitting activity submitted by a user.

    carbon_emission_kg and emission_factor_provenance are derived by the
    calculation service and never accepted from clients.
    """

    __tablename__ = "activities"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    institution_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    category = Column(String(50), nullable=False, index=True)
    subcategory = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)

    activity_date = Column(
        Date,
        nullable=False,
        index=True,
        comment="Date when the activity occurred",
    )

    # Detail variants
    transportation = Column(JSON, nullable=True)
    electricity = Column(JSON, nullable=True)
    food = Column(JSON, nullable=True)
    waste = Column(JSON, nullable=True)
    water = Column(JSON, nullable=True)
    quantity = Column(Numeric(14, 3), nullable=True)
    unit = Column(String(50), nullable=True)

    carbon_emission_kg = Column(
        Numeric(14, 3),
        nullable=False,
        default=0,
        comment="Derived emissions in kg CO2e",
    )
    emission_factor_provenance = Column(
        JSON,
        nullable=True,
        comment="Factor value, source, version, tier and fallback reason",
    )

    data_source = Column(String(30), nullable=False, default="manual")
    notes = Column(Text, nullable=True)

    # Soft delete
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_activities_user_date", "user_id", "activity_date"),
        Index("ix_activities_institution_date", "institution_id", "activity_date"),
        {"comment": "Activities with derived carbon emissions"},
    )

    def __repr__(self):
        return f"<ActivityDBModel: {self.category} {self.activity_date} - {self.carbon_emission_kg} kg>"
