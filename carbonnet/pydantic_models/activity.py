"""
Pydantic models for Activity records following kkb_fastapi pattern.
"""
from datetime import date as DateType
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from carbonnet.utils.constants import (
    ActivityCategory,
    DataSource,
    FallbackReason,
    ResolutionTier,
)


class TransportationDetails(BaseModel):
    """Trip details for transportation activities."""

    mode: Optional[str] = Field(None, description="car, bike, bus, train, metro, flight, ...")
    distance_km: Decimal = Field(Decimal("0"), description="Distance travelled in km")
    fuel_type: Optional[str] = Field(
        None, description="petrol, diesel, cng, electric, hybrid or none"
    )
    passengers: int = Field(1, ge=0, description="People sharing the trip")


class ElectricityDetails(BaseModel):
    """Metered electricity consumption."""

    consumption_kwh: Decimal = Field(Decimal("0"), description="Consumption in kWh")
    source: Optional[str] = Field(None, description="grid, solar, wind or hybrid")


class FoodDetails(BaseModel):
    """Meals served or eaten."""

    diet_type: Optional[str] = Field(None, description="veg, non-veg or vegan")
    meal_count: int = Field(1, ge=0, description="Number of meals")
    waste_kg: Decimal = Field(Decimal("0"), description="Food wasted in kg")


class WasteDetails(BaseModel):
    """Disposed waste."""

    type: Optional[str] = Field(
        None, description="paper, plastic, food, electronic or general"
    )
    quantity_kg: Decimal = Field(Decimal("0"), description="Waste quantity in kg")
    recycled: bool = Field(False, description="Whether the waste was recycled")


class WaterDetails(BaseModel):
    """Water consumption."""

    consumption_liters: Decimal = Field(Decimal("0"), description="Consumption in liters")
    usage: Optional[str] = Field(None, description="drinking, washing, cleaning, ...")


class EmissionFactorProvenance(BaseModel):
    """
    Which factor produced an activity's emission figure.

    ``tier`` and ``fallback_reason`` are audit fields and are stripped
    from public responses.
    """

    factor_value: Decimal
    source_id: str
    version: Optional[str] = None
    factor_id: Optional[UUID] = None
    tier: ResolutionTier = ResolutionTier.DEFAULT
    fallback_reason: Optional[FallbackReason] = None


class PublicProvenance(BaseModel):
    """Provenance as shown to regular users."""

    model_config = ConfigDict(from_attributes=True)

    factor_value: Decimal
    source_id: str
    version: Optional[str] = None


class ActivityDetailsMixin(BaseModel):
    """Category specific detail variants plus the generic quantity."""

    transportation: Optional[TransportationDetails] = None
    electricity: Optional[ElectricityDetails] = None
    food: Optional[FoodDetails] = None
    waste: Optional[WasteDetails] = None
    water: Optional[WaterDetails] = None
    quantity: Optional[Decimal] = Field(None, description="Generic quantity")
    unit: Optional[str] = Field(None, max_length=50, description="Generic quantity unit")


class ActivityRecord(ActivityDetailsMixin):
    """
    An activity as consumed by the calculator and the aggregator.

    ``carbon_emission_kg`` is always derived by the calculator.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID | str
    user_id: UUID | str
    institution_id: Optional[UUID | str] = None
    category: ActivityCategory
    subcategory: Optional[str] = None
    description: Optional[str] = None
    activity_date: DateType
    carbon_emission_kg: Decimal = Decimal("0")
    emission_factor_provenance: Optional[EmissionFactorProvenance] = None
    data_source: DataSource = DataSource.MANUAL


class ActivityCreate(ActivityDetailsMixin):
    """Model for submitting an activity."""

    user_id: UUID
    institution_id: Optional[UUID] = None
    category: ActivityCategory
    subcategory: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    activity_date: DateType = Field(default_factory=DateType.today)
    data_source: DataSource = DataSource.MANUAL
    notes: Optional[str] = None


class ActivityUpdate(BaseModel):
    """Model for updating an activity; omitted fields are left unchanged."""

    category: Optional[ActivityCategory] = None
    subcategory: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    activity_date: Optional[DateType] = None
    transportation: Optional[TransportationDetails] = None
    electricity: Optional[ElectricityDetails] = None
    food: Optional[FoodDetails] = None
    waste: Optional[WasteDetails] = None
    water: Optional[WaterDetails] = None
    quantity: Optional[Decimal] = None
    unit: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class ActivityPydModel(ActivityDetailsMixin):
    """Model for activity response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    institution_id: Optional[UUID] = None
    category: ActivityCategory
    subcategory: Optional[str] = None
    description: Optional[str] = None
    activity_date: DateType
    carbon_emission_kg: Decimal
    emission_unit: str = "kg CO2e"
    emission_factor_provenance: Optional[PublicProvenance] = None
    data_source: DataSource
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ActivityEstimateResponse(BaseModel):
    """Emission preview for an activity that is not stored."""

    carbon_emission_kg: Decimal
    emission_unit: str = "kg CO2e"
    emission_factor_provenance: Optional[PublicProvenance] = None
    activity: ActivityCreate


class ActivityBulkCreate(BaseModel):
    """
    Many activities submitted at once.

    Items are validated one by one; invalid items are reported and the rest
    are still created. Items without a data source are recorded as file uploads.
    """

    activities: list[dict[str, Any]] = Field(..., min_length=1)


class BulkActivityError(BaseModel):
    index: int
    error: str


class ActivityBulkCreateResponse(BaseModel):
    created: int
    failed: int
    activities: list[ActivityPydModel]
    errors: list[BulkActivityError]
