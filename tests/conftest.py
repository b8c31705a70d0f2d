import copy
import json
import re

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from ibarize.dependencies import services as deps
from ibarize.main import app
from ibarize.routers.auth import login_limiter
from ibarize.schemas.property import normalize_property
from ibarize.services.api import ApiService
from ibarize.services.storage import LocalStore

LISTINGS = [
    {
        "id": "1",
        "title": "Luxury Apartment in City Center",
        "price": 180000,
        "location": "Kicukiro, Kigali",
        "bedrooms": 3,
        "bathrooms": 2,
        "size": 120,
        "type": "apartment",
        "description": "Modern apartment with city views",
        "images": ["/uploads/living-room.jpg"],
        "videos": [],
        "amenities": ["WiFi", "Parking"],
        "featured": True,
        "status": "active",
        "yearBuilt": 2023,
        "parking": 2,
        "floor": 5,
        "furnished": True,
        "petFriendly": False,
        "garden": False,
        "balcony": True,
        "securitySystem": True,
        "nearbyFacilities": ["School"],
        "createdAt": "2026-01-10T08:00:00Z",
    },
    {
        "id": "2",
        "title": "Family House with Garden",
        "price": "450000",
        "location": "Gacuriro, Kigali",
        "bedrooms": "4",
        "bathrooms": "3",
        "size": "300",
        "type": "house",
        "description": "Quiet neighbourhood, large garden",
        "images": [],
        "videos": ["https://cdn.example.com/tour.mp4"],
        "amenities": [],
        "featured": False,
        "status": "pending",
        "yearBuilt": "",
        "parking": "1",
        "floor": "1",
        "furnished": False,
        "petFriendly": True,
        "garden": True,
        "balcony": False,
        "securitySystem": False,
        "nearbyFacilities": [],
        "createdAt": "2026-02-01T08:00:00Z",
    },
    {
        "id": "3",
        "title": "Downtown Office Space",
        "price": 900000,
        "location": "Nyarugenge, Kigali",
        "bedrooms": 0,
        "bathrooms": 1,
        "size": 250,
        "type": "commercial",
        "description": "Open plan floor near the bus park",
        "images": [],
        "videos": [],
        "amenities": ["Elevator"],
        "featured": True,
        "status": "sold",
        "yearBuilt": 2015,
        "parking": 10,
        "floor": 3,
        "furnished": False,
        "petFriendly": False,
        "garden": False,
        "balcony": False,
        "securitySystem": True,
        "nearbyFacilities": [],
        "createdAt": "2026-03-01T08:00:00Z",
    },
]

class FakeRedis:
    """Just enough of redis.asyncio.Redis for the local store and the health cache."""

    def __init__(self):
        self.data = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value

    async def setex(self, key, ttl, value):
        self.data[key] = value

    async def delete(self, *keys):
        return sum(1 for k in keys if self.data.pop(k, None) is not None)

class FakeBackend:
    """In-process stand-in for the listing backend, served through httpx.MockTransport."""

    def __init__(self, properties):
        self.properties = {p["id"]: p for p in properties}
        self.fail = False
        self.calls = []
        self.next_id = 100

    def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.calls.append((method, path))
        if self.fail:
            return httpx.Response(500, json={"error": "backend down"})

        if path == "/api/properties":
            if method == "GET":
                return httpx.Response(200, json=list(self.properties.values()))
            body = json.loads(request.content)
            self.next_id += 1
            pid = str(self.next_id)
            self.properties[pid] = {**body, "id": pid}
            return httpx.Response(201, json={"id": pid, "message": "Property created successfully"})

        if path.startswith("/api/properties/"):
            pid = path.rsplit("/", 1)[-1]
            if pid not in self.properties:
                return httpx.Response(404, json={"error": "Property not found"})
            if method == "GET":
                return httpx.Response(200, json=self.properties[pid])
            if method == "PUT":
                self.properties[pid].update(json.loads(request.content))
                return httpx.Response(200, json={"message": "Property updated successfully"})
            if method == "DELETE":
                del self.properties[pid]
                return httpx.Response(200, json={"message": "Property deleted successfully"})

        if path == "/api/upload":
            names = [n.decode() for n in re.findall(rb'filename="([^"]+)"', request.content)]
            return httpx.Response(200, json={"files": [
                {
                    "id": str(i),
                    "filename": name,
                    "url": f"/uploads/{name}",
                    "mimetype": "image/jpeg",
                    "size": 10,
                    "uploadedAt": "2026-10-01T00:00:00Z",
                }
                for i, name in enumerate(names)
            ]})

        if path == "/api/files":
            return httpx.Response(200, json={"files": [], "pagination": {"page": 1, "totalPages": 1}})
        if path == "/api/analytics":
            return httpx.Response(200, json={"totalProperties": len(self.properties), "totalViews": 42, "totalLeads": 7, "averagePrice": 510000})
        if path == "/api/settings":
            return httpx.Response(200, json={"message": "Settings updated"})
        if path == "/api/user":
            if method == "PUT":
                return httpx.Response(200, json={"message": "User updated"})
            return httpx.Response(200, json={"id": "u1", "name": "Broker", "email": "broker@ibarize.com"})
        if path == "/api/health":
            return httpx.Response(200, json={"status": "OK", "message": "Server is running"})
        return httpx.Response(404, json={"error": "unknown route"})

@pytest.fixture
def listings():
    return [normalize_property(p) for p in copy.deepcopy(LISTINGS)]

@pytest.fixture
def backend():
    return FakeBackend(copy.deepcopy(LISTINGS))

@pytest.fixture
def api(backend):
    return ApiService(transport=httpx.MockTransport(backend.handler))

@pytest.fixture
def fake_redis(monkeypatch):
    redis = FakeRedis()

    async def get_client():
        return redis

    monkeypatch.setattr("ibarize.services.storage.get_redis_client", get_client)
    monkeypatch.setattr("ibarize.services.health.get_redis_client", get_client)
    return redis

@pytest.fixture
def store(fake_redis):
    return LocalStore(fake_redis)

@pytest.fixture
async def client(api, fake_redis):
    deps.reset_state()
    app.dependency_overrides[deps.get_api] = lambda: api
    app.dependency_overrides[login_limiter] = lambda: None
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    deps.reset_state()

@pytest.fixture
async def broker(client):
    response = await client.post("/auth/login", json={"email": "broker@ibarize.com", "password": "admin123"})
    assert response.status_code == 200
    return client
