"""
EmissionFactor SQLAlchemy model.
"""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, Numeric, String, Text, Uuid

from carbonnet.database import Base


class EmissionFactorDBModel(Base):
    """
    Emission factor lookup table.

    A row applies to (category, subcategory_key) for one institution, or to
    everyone when institution_id is null, between valid_from and valid_until.
    Factors with history are deactivated, never deleted.
    """

    __tablename__ = "emission_factors"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    category = Column(
        String(50),
        nullable=False,
        comment="Activity category (transportation, electricity, ...)",
    )

    subcategory_key = Column(
        String(100),
        nullable=False,
        comment="Lookup key within the category (e.g. 'car_petrol', 'grid')",
    )

    description = Column(Text, nullable=True)

    factor_value = Column(
        Numeric(12, 6),
        nullable=False,
        comment="kg CO2e per unit",
    )

    unit = Column(String(50), nullable=False, comment="Unit of activity (km, kWh, meal, kg, liter)")
    emission_unit = Column(String(50), nullable=False, default="kg CO2e")

    scope = Column(Integer, nullable=False, comment="GHG Protocol scope (1, 2, or 3)")

    source = Column(
        String(30),
        nullable=False,
        comment="Publisher (DEFRA, IPCC, GHG_PROTOCOL, EPA, CUSTOM, OTHER)",
    )
    source_year = Column(Integer, nullable=True)
    region = Column(String(20), nullable=False, default="IN")
    version = Column(String(50), nullable=True)

    valid_from = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=True)

    institution_id = Column(
        Uuid(as_uuid=True),
        nullable=True,
        comment="Owning institution; null for global factors",
    )

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index(
            "ix_emission_factors_lookup",
            "category",
            "subcategory_key",
            "institution_id",
            "is_active",
        ),
        Index("ix_emission_factors_valid_from", "valid_from"),
        {"comment": "Emission factors with institution and validity scoping"},
    )

    def __repr__(self):
        return f"<EmissionFactorDBModel: {self.category}/{self.subcategory_key} = {self.factor_value}>"
