"""
API tests for emission factors endpoint following kkb_fastapi pattern.
"""
import uuid
from decimal import Decimal
from uuid import uuid4

import pytest

from carbonnet.test.factory.emission_factor import (
    EmissionFactorFactory,
    InstitutionEmissionFactorFactory,
    TransportationEmissionFactorFactory,
)
from carbonnet.utils.constants import ActivityCategory, Scope


@pytest.mark.asyncio
async def test_list_emission_factors_empty(test_async_client):
    """Test listing emission factors when database is empty."""
    response = await test_async_client.get("/api/v1/factors/")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_list_emission_factors_with_data(test_async_client):
    """Test listing emission factors with existing data."""
    await EmissionFactorFactory()
    await EmissionFactorFactory()
    await TransportationEmissionFactorFactory()

    response = await test_async_client.get("/api/v1/factors/")
    assert response.status_code == 200

    data = response.json()
    assert len(data) == 3
    assert all("id" in item for item in data)
    assert all("subcategory_key" in item for item in data)


@pytest.mark.asyncio
async def test_get_emission_factor_by_id(test_async_client):
    """Test retrieving a specific emission factor by ID."""
    factor = await EmissionFactorFactory()

    response = await test_async_client.get(f"/api/v1/factors/{factor.id}")
    assert response.status_code == 200

    data = response.json()
    assert data["id"] == str(factor.id)
    assert data["category"] == factor.category
    assert data["subcategory_key"] == factor.subcategory_key
    assert Decimal(data["factor_value"]) == Decimal("0.5")


@pytest.mark.asyncio
async def test_get_emission_factor_not_found(test_async_client):
    """Test retrieving non-existent emission factor."""
    response = await test_async_client.get(f"/api/v1/factors/{uuid4()}")
    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


@pytest.mark.asyncio
async def test_filter_emission_factors_by_category(test_async_client):
    """Test filtering emission factors by activity category."""
    await EmissionFactorFactory()
    await EmissionFactorFactory()
    await TransportationEmissionFactorFactory()

    response = await test_async_client.get(
        f"/api/v1/factors/?category={ActivityCategory.TRANSPORTATION.value}"
    )
    assert response.status_code == 200

    data = response.json()
    assert len(data) == 1
    assert data[0]["subcategory_key"] == "car_petrol"


@pytest.mark.asyncio
async def test_filter_emission_factors_by_scope(test_async_client):
    """Test filtering emission factors by GHG scope."""
    await EmissionFactorFactory(scope=Scope.SCOPE_2)
    await EmissionFactorFactory(scope=Scope.SCOPE_2)
    await TransportationEmissionFactorFactory()

    response = await test_async_client.get(f"/api/v1/factors/?scope={Scope.SCOPE_2}")
    assert response.status_code == 200

    data = response.json()
    assert len(data) == 2
    assert all(item["scope"] == Scope.SCOPE_2 for item in data)


@pytest.mark.asyncio
async def test_create_emission_factor(test_async_client):
    payload = {
        "category": "food",
        "subcategory_key": "veg",
        "factor_value": "1.8",
        "unit": "meal",
        "scope": 3,
        "source": "CUSTOM",
        "valid_from": "2024-01-01",
        "institution_id": str(uuid.uuid4()),
    }

    response = await test_async_client.post("/api/v1/factors/", json=payload)
    assert response.status_code == 201

    data = response.json()
    assert data["category"] == "food"
    assert data["source"] == "CUSTOM"
    assert data["is_active"] is True
    assert data["institution_id"] == payload["institution_id"]


@pytest.mark.asyncio
async def test_create_emission_factor_rejects_inverted_window(test_async_client):
    payload = {
        "category": "food",
        "subcategory_key": "veg",
        "factor_value": "1.8",
        "unit": "meal",
        "scope": 3,
        "source": "CUSTOM",
        "valid_from": "2024-06-01",
        "valid_until": "2024-01-01",
    }

    response = await test_async_client.post("/api/v1/factors/", json=payload)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_deactivate_emission_factor(test_async_client):
    factor = await EmissionFactorFactory()

    response = await test_async_client.post(f"/api/v1/factors/{factor.id}/deactivate")
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await test_async_client.get("/api/v1/factors/?active_only=true")
    assert response.json() == []


@pytest.mark.asyncio
async def test_resolve_prefers_institution_factor(test_async_client):
    factor = await InstitutionEmissionFactorFactory()
    await EmissionFactorFactory(factor_value=Decimal("0.7"))

    response = await test_async_client.get(
        "/api/v1/factors/resolve",
        params={
            "category": "electricity",
            "subcategory_key": "grid",
            "institution_id": str(factor.institution_id),
            "as_of": "2024-06-01",
        },
    )
    assert response.status_code == 200

    data = response.json()
    assert Decimal(data["factor_value"]) == Decimal("0.4")
    assert data["as_of"] == "2024-06-01"
    assert "tier" not in data
    assert "fallback_reason" not in data


@pytest.mark.asyncio
async def test_resolve_falls_back_to_default_table(test_async_client):
    response = await test_async_client.get(
        "/api/v1/factors/resolve",
        params={"category": "electricity", "subcategory_key": "grid", "as_of": "2024-06-01"},
    )
    assert response.status_code == 200

    data = response.json()
    assert Decimal(data["factor_value"]) == Decimal("0.82")
    assert data["source"] == "IPCC"
    assert data["version"] == "2023"


@pytest.mark.asyncio
async def test_update_emission_factor(test_async_client):
    factor = await EmissionFactorFactory()

    response = await test_async_client.patch(
        f"/api/v1/factors/{factor.id}",
        json={"factor_value": "0.45", "valid_until": "2024-12-31", "version": None},
    )
    assert response.status_code == 200

    data = response.json()
    assert Decimal(data["factor_value"]) == Decimal("0.45")
    assert data["valid_until"] == "2024-12-31"
    assert data["version"] is None
    assert data["subcategory_key"] == "grid"
    assert data["unit"] == "kWh"

    resolved = await test_async_client.get(
        "/api/v1/factors/resolve",
        params={"category": "electricity", "subcategory_key": "grid", "as_of": "2024-06-01"},
    )
    assert Decimal(resolved.json()["factor_value"]) == Decimal("0.45")


@pytest.mark.asyncio
async def test_update_emission_factor_rejects_inverted_window(test_async_client):
    factor = await EmissionFactorFactory()

    response = await test_async_client.patch(
        f"/api/v1/factors/{factor.id}", json={"valid_until": "2023-06-30"}
    )
    assert response.status_code == 422
    assert "valid_until" in response.json()["detail"]

    unchanged = await test_async_client.get(f"/api/v1/factors/{factor.id}")
    assert unchanged.json()["valid_until"] is None


@pytest.mark.asyncio
async def test_update_emission_factor_ignores_null_required_fields(test_async_client):
    factor = await EmissionFactorFactory()

    response = await test_async_client.patch(
        f"/api/v1/factors/{factor.id}", json={"unit": None, "description": "Grid mix"}
    )
    assert response.status_code == 200
    assert response.json()["unit"] == "kWh"
    assert response.json()["description"] == "Grid mix"


@pytest.mark.asyncio
async def test_update_emission_factor_not_found(test_async_client):
    response = await test_async_client.patch(
        f"/api/v1/factors/{uuid4()}", json={"factor_value": "1"}
    )
    assert response.status_code == 404
