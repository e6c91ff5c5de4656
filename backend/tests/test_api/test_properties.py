"""Tests for public property browsing."""

import uuid
from decimal import Decimal

from httpx import AsyncClient

from bookhaven.models.property import Property


class TestListProperties:
    async def test_lists_available_properties(self, client: AsyncClient, make_property) -> None:
        await make_property(name="Villa A")
        await make_property(name="Villa B")
        await make_property(name="Hidden", status="unavailable")

        response = await client.get("/api/v1/properties")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {p["name"] for p in data["items"]} == {"Villa A", "Villa B"}

    async def test_owner_does_not_see_own_listings(
        self, client: AsyncClient, make_property, vendor_headers: dict, auth_headers: dict
    ) -> None:
        await make_property()

        assert (await client.get("/api/v1/properties", headers=vendor_headers)).json()["total"] == 0
        assert (await client.get("/api/v1/properties", headers=auth_headers)).json()["total"] == 1

    async def test_filters(self, client: AsyncClient, make_property) -> None:
        await make_property(name="Cheap Cabin", property_type="cabin", location="Katoomba", price_per_night=Decimal("80"))
        await make_property(name="Big House", property_type="house", location="Byron Bay", max_guests=8)
        await make_property(name="City Flat", property_type="apartment", location="Sydney", price_per_night=Decimal("250"))

        async def names(**params) -> set[str]:
            response = await client.get("/api/v1/properties", params=params)
            return {p["name"] for p in response.json()["items"]}

        assert await names(location="byron") == {"Big House"}
        assert await names(property_type="cabin") == {"Cheap Cabin"}
        assert await names(max_price=90) == {"Cheap Cabin"}
        assert await names(min_price=200) == {"City Flat"}
        assert await names(guests=6) == {"Big House"}

    async def test_pagination(self, client: AsyncClient, make_property) -> None:
        for i in range(3):
            await make_property(name=f"Villa {i}")

        response = await client.get("/api/v1/properties", params={"skip": 1, "limit": 1})
        data = response.json()
        assert data["total"] == 3
        assert len(data["items"]) == 1

    async def test_bad_query_parameter(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/properties", params={"limit": 0})
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestGetProperty:
    async def test_detail(self, client: AsyncClient, test_property: Property) -> None:
        response = await client.get(f"/api/v1/properties/{test_property.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(test_property.id)
        assert data["price_per_night"] == 100.0
        assert data["max_guests"] == 4
        assert data["booked_dates"] == []
        assert data["amenities"] == {"wifi": True}

    async def test_not_found(self, client: AsyncClient) -> None:
        response = await client.get(f"/api/v1/properties/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Property not found"}

    async def test_invalid_id(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/properties/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid Property ID"


class TestHealth:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
