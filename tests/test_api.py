import httpx
import pytest
from fastapi.testclient import TestClient

from truckmap.config import settings
from truckmap.data.profiles_repository import ProfileRepository
from truckmap.main import create_app
from truckmap.models.domain import FirebaseIdentity
from truckmap.services.identity import SessionManager
from truckmap.services.geospatial import haversine_miles


@pytest.fixture
def seeded(fake_supabase):
    fake_supabase.rows("food_trucks").extend(
        [
            {"id": "T1", "truck_name": "Taco Town", "is_active": True, "cuisine_types": ["Tacos"], "average_rating": 4.5},
            {"id": "T2", "truck_name": "Brooklyn BBQ", "is_active": True, "cuisine_types": ["BBQ"], "average_rating": 4.9},
            {"id": "T3", "truck_name": "LA Bites", "is_active": True, "cuisine_types": ["Tacos"]},
            {"id": "T4", "truck_name": "Ghost Kitchen", "is_active": True},
            {"id": "T5", "truck_name": "Broken GPS", "is_active": True},
        ]
    )
    fake_supabase.rows("food_truck_locations").extend(
        [
            {"id": "L1", "food_truck_id": "T1", "latitude": 40.7150, "longitude": -74.0080, "is_current": True},
            {"id": "L2", "food_truck_id": "T2", "latitude": 40.7306, "longitude": -73.9352, "is_current": True},
            {"id": "L3", "food_truck_id": "T3", "latitude": 34.0522, "longitude": -118.2437, "is_current": True},
            {"id": "L5", "food_truck_id": "T5", "latitude": "unknown", "longitude": -74.0, "is_current": True},
        ]
    )
    return fake_supabase


@pytest.fixture
def manager(fake_supabase) -> SessionManager:
    return SessionManager(
        ProfileRepository(fake_supabase),
        auth_client=fake_supabase,
        firebase_verifier=lambda token: FirebaseIdentity(uid="fb-1", email="fan@trucks.io", display_name="Fan"),
        sleep=lambda seconds: None,
    )


@pytest.fixture
def api_client(manager) -> TestClient:
    return TestClient(create_app(session_manager=manager))


def test_health(api_client, fake_supabase):
    assert api_client.get("/api/health").json() == {"status": "ok"}

    database = api_client.get("/api/health/database").json()
    assert database["connected"] is True
    assert database["tables"] == {"profiles": True, "food_trucks": True, "food_truck_locations": True}


def test_discover_within_radius(api_client, seeded):
    response = api_client.get("/api/trucks/discover", params={"lat": 40.7128, "lng": -74.0060, "radius": 10})

    assert response.status_code == 200
    body = response.json()
    assert [item["id"] for item in body["items"]] == ["T1", "T2"]
    assert body["location_available"] is True
    assert body["radius_miles"] == 10
    assert body["total_candidates"] == 5
    assert body["items"][0]["distance_miles"] == round(haversine_miles(40.7128, -74.0060, 40.7150, -74.0080), 2)


def test_discover_without_location_flags_it(api_client, seeded):
    body = api_client.get("/api/trucks/discover", params={"cuisine": "Tacos", "sort": "rating"}).json()

    assert body["location_available"] is False
    assert body["radius_miles"] is None
    assert [item["id"] for item in body["items"]] == ["T1", "T3"]
    assert all(item["distance_miles"] is None for item in body["items"])


def test_discover_rejects_out_of_range_reference(api_client, seeded):
    assert api_client.get("/api/trucks/discover", params={"lat": 123.0, "lng": 0.0}).status_code == 422


def test_discover_favorites_needs_a_user(api_client, seeded):
    assert api_client.get("/api/trucks/discover", params={"favorites_only": True}).status_code == 400

    api_client.post("/api/users/u1/favorites/T2")
    body = api_client.get("/api/trucks/discover", params={"favorites_only": True, "user_id": "u1"}).json()
    assert [item["id"] for item in body["items"]] == ["T2"]


def test_owner_nearby_trucks(api_client, seeded):
    body = api_client.get("/api/trucks/T1/nearby", params={"radius": 5}).json()

    assert body["reference"]["latitude"] == 40.7150
    assert [item["id"] for item in body["items"]] == ["T2"]

    assert api_client.get("/api/trucks/T4/nearby").status_code == 409
    assert api_client.get("/api/trucks/T5/nearby").status_code == 409
    assert api_client.get("/api/trucks/nope/nearby").status_code == 404


def test_location_update_requires_coordinates(api_client, seeded):
    response = api_client.put("/api/trucks/T4/location", json={"address": "Somewhere"})

    assert response.status_code == 422
    assert response.json()["detail"].startswith("Location unavailable")
    assert not any(row["food_truck_id"] == "T4" for row in seeded.rows("food_truck_locations"))


def test_location_update_moves_the_truck(api_client, seeded):
    response = api_client.put("/api/trucks/T4/location", json={"latitude": 40.7130, "longitude": -74.0050})

    assert response.status_code == 200
    assert response.json()["latitude"] == 40.7130
    nearby = api_client.get("/api/trucks/discover", params={"lat": 40.7128, "lng": -74.0060, "radius": 1}).json()
    assert "T4" in [item["id"] for item in nearby["items"]]


@pytest.fixture
def trusted(monkeypatch) -> dict:
    monkeypatch.setattr(settings, "session_api_key", "s3cret")
    return {"X-TruckMap-Key": "s3cret"}


def _bearer(fake_supabase, user_id: str) -> dict:
    fake_supabase.auth.add_user(f"{user_id}@trucks.io", "Secret#123", user_id=user_id)
    return {"Authorization": f"Bearer token-{user_id}"}


def test_session_endpoint_keeps_user_edits(api_client, fake_supabase, trusted):
    first = api_client.post(
        "/api/auth/session",
        json={"provider": "supabase", "external_id": "u1", "email": "a@b.com", "display_name": "Alice"},
        headers=trusted,
    )
    assert first.status_code == 200
    assert first.json()["state"] == "profile_created"

    owner = _bearer(fake_supabase, "u1")
    edited = api_client.patch("/api/profiles/u1", json={"full_name": "Alice B."}, headers=owner)
    assert edited.json()["full_name"] == "Alice B."

    again = api_client.post(
        "/api/auth/session",
        json={"provider": "firebase", "external_id": "u1", "display_name": "Alicia", "avatar_url": "https://p/a.png"},
        headers=trusted,
    )
    body = again.json()
    assert body["state"] == "profile_updated"
    assert body["changed_fields"] == ["profile_image_url"]
    assert body["profile"]["full_name"] == "Alice B."
    assert api_client.get("/api/profiles/u1", headers=owner).json()["profile_image_url"] == "https://p/a.png"


def test_session_endpoint_requires_the_shared_key(api_client, fake_supabase, monkeypatch):
    assertion = {"provider": "supabase", "external_id": "u1", "email": "a@b.com"}

    assert api_client.post("/api/auth/session", json=assertion).status_code == 503

    monkeypatch.setattr(settings, "session_api_key", "s3cret")
    assert api_client.post("/api/auth/session", json=assertion).status_code == 401
    assert api_client.post("/api/auth/session", json=assertion, headers={"X-TruckMap-Key": "guess"}).status_code == 401
    assert fake_supabase.rows("profiles") == []


def test_unverified_session_email_does_not_link(api_client, fake_supabase, trusted):
    api_client.post(
        "/api/auth/session",
        json={"provider": "supabase", "external_id": "u1", "email": "a@b.com", "email_verified": True},
        headers=trusted,
    )

    body = api_client.post(
        "/api/auth/session",
        json={"provider": "firebase", "external_id": "fb-9", "email": "a@b.com"},
        headers=trusted,
    ).json()

    assert body["profile"]["id"] == "fb-9"
    assert body["state"] == "profile_created"


def test_profiles_are_only_visible_to_their_owner(api_client, fake_supabase, trusted):
    api_client.post("/api/auth/session", json={"provider": "supabase", "external_id": "u1"}, headers=trusted)
    intruder = _bearer(fake_supabase, "u2")
    before = dict(fake_supabase.rows("profiles")[0])

    assert api_client.patch("/api/profiles/u1", json={"full_name": "Pwned"}).status_code == 401
    assert api_client.patch(
        "/api/profiles/u1", json={"full_name": "Pwned"}, headers={"Authorization": "Bearer forged"}
    ).status_code == 403
    assert api_client.patch("/api/profiles/u1", json={"full_name": "Pwned"}, headers=intruder).status_code == 403
    assert api_client.get("/api/profiles/u1", headers=intruder).status_code == 403
    assert fake_supabase.rows("profiles") == [before]


def test_failed_profile_write_blocks_the_session(api_client, fake_supabase, trusted):
    fake_supabase.fail("profiles", "upsert", httpx.ReadTimeout("timed out"), times=10)

    response = api_client.post("/api/auth/session", json={"provider": "firebase", "external_id": "fb-1"}, headers=trusted)

    assert response.status_code == 503
    assert response.json()["detail"] == "Sign-in failed, please retry."


def test_firebase_sign_in(api_client, fake_supabase):
    response = api_client.post("/api/auth/firebase", json={"id_token": "abc"})

    assert response.status_code == 200
    assert response.json()["profile"]["full_name"] == "Fan"
    assert response.json()["provider"] == "firebase"


def test_password_sign_up_and_sign_in(api_client, fake_supabase):
    created = api_client.post(
        "/api/auth/sign-up",
        json={"email": "owner@trucks.io", "password": "Grill#Master9", "full_name": "Olive", "role": "food_truck_owner"},
    )
    assert created.status_code == 201
    assert created.json()["profile"]["role"] == "food_truck_owner"

    assert api_client.post("/api/auth/sign-in", json={"email": "owner@trucks.io", "password": "wrong"}).status_code == 401
    signed_in = api_client.post("/api/auth/sign-in", json={"email": "owner@trucks.io", "password": "Grill#Master9"})
    assert signed_in.status_code == 200
    assert signed_in.json()["access_token"].startswith("token-")


def test_missing_profile_is_404(api_client, fake_supabase):
    owner = _bearer(fake_supabase, "nobody")

    assert api_client.get("/api/profiles/nobody", headers=owner).status_code == 404
    assert api_client.patch("/api/profiles/nobody", json={"bio": "hi"}, headers=owner).status_code == 404
    assert api_client.patch("/api/profiles/nobody", json={}, headers=owner).status_code == 400


def test_truck_events_are_recorded(api_client, fake_supabase):
    response = api_client.post(
        "/api/trucks/T1/events", json={"event_type": "phone_click", "user_id": "u1", "event_data": {"from": "card"}}
    )

    assert response.status_code == 202
    assert response.json() == {"truck_id": "T1", "event_type": "phone_click", "recorded": True}
    [row] = fake_supabase.rows("analytics_events")
    assert row["food_truck_id"] == "T1"
    assert row["event_data"] == {"from": "card"}

    assert api_client.post("/api/trucks/T1/events", json={"event_type": "page_scroll"}).status_code == 422


def test_discover_rejects_half_a_reference_point(api_client, seeded):
    response = api_client.get("/api/trucks/discover", params={"lat": 40.7})

    assert response.status_code == 422
    assert response.json()["detail"] == "lat and lng must be supplied together."
    assert api_client.get("/api/trucks/discover", params={"lng": -74.0}).status_code == 422


def test_favorite_toggle_round_trip(api_client, fake_supabase):
    assert api_client.post("/api/users/u1/favorites/T1").json() == {"truck_id": "T1", "favorite": True}
    assert api_client.get("/api/users/u1/favorites").json() == ["T1"]
    assert api_client.post("/api/users/u1/favorites/T1").json() == {"truck_id": "T1", "favorite": False}
    assert api_client.get("/api/users/u1/favorites/T1").json()["favorite"] is False


def test_admin_endpoints(api_client, fake_supabase):
    created = api_client.post(
        "/api/admin/changelog",
        json={"change_type": "config", "title": "Radius", "description": "Default radius is 25", "severity": "low"},
    )
    assert created.status_code == 201
    assert created.json()["title"] == "Radius"

    screened = api_client.post("/api/security/validate-input", json={"value": "x' UNION SELECT 1", "field_name": "name"})
    assert screened.json()["valid"] is False


def test_sign_in_unavailable_without_database(no_supabase, monkeypatch):
    from truckmap import main

    monkeypatch.setattr(main, "get_supabase_client", lambda: None)
    client = TestClient(create_app())

    assert client.post("/api/auth/sign-in", json={"email": "a@b.com", "password": "x"}).status_code == 503
    assert client.get("/api/trucks/discover").status_code == 503
    assert client.get("/api/health/database").json()["configured"] is False
