"""
Pydantic models for EmissionFactor following kkb_fastapi pattern.
"""
from datetime import date as DateType
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from carbonnet.utils.constants import (
    ActivityCategory,
    FactorSource,
    FallbackReason,
    ResolutionTier,
)


class EmissionFactorBase(BaseModel):
    """Base emission factor model."""

    category: ActivityCategory = Field(..., description="Activity category")
    subcategory_key: str = Field(
        ..., max_length=100, description="Lookup key within the category (e.g. car_petrol)"
    )
    description: Optional[str] = Field(None, description="Human readable description")
    factor_value: Decimal = Field(..., ge=0, description="kg CO2e per unit")
    unit: str = Field(..., max_length=50, description="Unit of activity (e.g. km, kWh)")
    emission_unit: str = Field("kg CO2e", max_length=50)
    scope: int = Field(..., ge=1, le=3, description="GHG Protocol scope (1, 2, or 3)")
    source: FactorSource = Field(..., description="Publisher of the factor")
    source_year: Optional[int] = Field(None, description="Publication year")
    region: str = Field("IN", max_length=20)
    version: Optional[str] = Field(None, max_length=50)
    valid_from: DateType = Field(..., description="First day the factor applies")
    valid_until: Optional[DateType] = Field(
        None, description="Last day the factor applies (open-ended if omitted)"
    )
    institution_id: Optional[UUID] = Field(
        None, description="Owning institution; null for global factors"
    )
    is_active: bool = Field(True, description="Inactive factors are never resolved")

    @model_validator(mode="after")
    def check_validity_window(self):
        if self.valid_until is not None and self.valid_until < self.valid_from:
            raise ValueError("valid_until must not be before valid_from")
        return self


class EmissionFactor(EmissionFactorBase):
    """Emission factor as seen by the resolver."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[UUID] = None

    def applies_on(self, as_of: DateType) -> bool:
        """True when the factor is active and its window covers ``as_of``."""
        if not self.is_active or self.valid_from > as_of:
            return False
        return self.valid_until is None or self.valid_until >= as_of


class EmissionFactorCreate(EmissionFactorBase):
    """Model for creating emission factor."""
    pass


class EmissionFactorUpdate(BaseModel):
    """
    Model for editing a factor; omitted fields are left unchanged.

    The lookup identity (category, subcategory key, institution) is fixed;
    create a new factor to change it.
    """

    description: Optional[str] = None
    factor_value: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=50)
    emission_unit: Optional[str] = Field(None, max_length=50)
    scope: Optional[int] = Field(None, ge=1, le=3)
    source: Optional[FactorSource] = None
    source_year: Optional[int] = None
    region: Optional[str] = Field(None, max_length=20)
    version: Optional[str] = Field(None, max_length=50)
    valid_from: Optional[DateType] = None
    valid_until: Optional[DateType] = None
    is_active: Optional[bool] = None


class EmissionFactorPydModel(EmissionFactorBase):
    """Model for emission factor response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime


class ResolvedFactor(BaseModel):
    """Outcome of the institution -> global -> default fallback chain."""

    factor_value: Decimal
    unit: str
    scope: int
    source: str
    version: Optional[str] = None
    tier: ResolutionTier
    factor_id: Optional[UUID] = None
    fallback_reason: Optional[FallbackReason] = None


class ResolvedFactorResponse(BaseModel):
    """Model for the factor resolution endpoint."""

    category: ActivityCategory
    subcategory_key: str
    as_of: DateType
    factor_value: Decimal
    unit: str
    scope: int
    source: str
    version: Optional[str] = None
