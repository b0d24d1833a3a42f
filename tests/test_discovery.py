import pytest

from truckmap.errors import LocationUnavailable
from truckmap.models.domain import LocationPoint, TruckCandidate, TruckLocation
from truckmap.services.discovery import DiscoveryFilters, discover_trucks, nearby_trucks_for_owner

NYC = LocationPoint(40.7128, -74.0060)


def _truck(
    tid: str,
    lat: float | None,
    lng: float | None,
    *,
    name: str | None = None,
    active: bool = True,
    cuisines: tuple[str, ...] = ("Tacos",),
    dietary: tuple[str, ...] = (),
    rating: float = 4.0,
    reviews: int = 10,
    address: str | None = None,
    zip_code: str | None = None,
) -> TruckCandidate:
    location = None
    if lat is not None and lng is not None:
        location = TruckLocation(latitude=lat, longitude=lng, address=address, zip_code=zip_code)
    return TruckCandidate(
        id=tid,
        name=name or f"Truck {tid}",
        location=location,
        is_active=active,
        cuisine_types=list(cuisines),
        dietary_options=list(dietary),
        average_rating=rating,
        total_reviews=reviews,
    )


@pytest.fixture
def trucks() -> list[TruckCandidate]:
    return [
        _truck("T1", 40.7150, -74.0080, name="Taco Town", zip_code="10007", address="Broadway"),
        _truck("T2", 40.7306, -73.9352, cuisines=("BBQ",), dietary=("gluten-free",), rating=4.8, reviews=3),
        _truck("T3", 40.6782, -73.9442, active=False, cuisines=("Thai", "Vegan"), rating=3.9, reviews=40),
        _truck("T4", 34.0522, -118.2437, name="LA Bites"),
        _truck("T5", None, None, name="Ghost Kitchen"),
    ]


def test_default_radius_keeps_local_trucks_only(trucks):
    result = discover_trucks(trucks, NYC, DiscoveryFilters())

    assert [t.id for t in result.trucks] == ["T1", "T2", "T3"]
    assert result.location_available is True
    assert result.radius_miles == 25
    assert result.total_candidates == 5
    assert result.distances["T1"] == pytest.approx(0.19, abs=0.01)


def test_unavailable_location_skips_radius_filter_and_flags_it(trucks):
    result = discover_trucks(trucks, None, DiscoveryFilters(radius_miles=1))

    assert result.location_available is False
    assert result.radius_miles is None
    assert result.distances == {}
    # LA stays because no radius ran; the truck with no location never shows
    assert [t.id for t in result.trucks] == ["T1", "T2", "T3", "T4"]


def test_attribute_filters(trucks):
    assert [t.id for t in discover_trucks(trucks, NYC, DiscoveryFilters(online_only=True)).trucks] == ["T1", "T2"]
    assert [t.id for t in discover_trucks(trucks, NYC, DiscoveryFilters(cuisines=("Vegan", "BBQ"))).trucks] == ["T2", "T3"]
    assert [t.id for t in discover_trucks(trucks, NYC, DiscoveryFilters(dietary=("gluten-free",))).trucks] == ["T2"]
    assert [t.id for t in discover_trucks(trucks, NYC, DiscoveryFilters(zip_code="10007")).trucks] == ["T1"]
    assert [t.id for t in discover_trucks(trucks, NYC, DiscoveryFilters(search="taco")).trucks] == ["T1"]
    assert [t.id for t in discover_trucks(trucks, NYC, DiscoveryFilters(search="broad")).trucks] == ["T1"]
    assert [t.id for t in discover_trucks(trucks, NYC, DiscoveryFilters(search="thai")).trucks] == ["T3"]


def test_favorites_only(trucks):
    filters = DiscoveryFilters(favorites_only=True, favorites=frozenset({"T3", "T4"}))

    assert [t.id for t in discover_trucks(trucks, NYC, filters).trucks] == ["T3"]


def test_sorting(trucks):
    by_rating = discover_trucks(trucks, NYC, DiscoveryFilters(sort="rating")).trucks
    by_reviews = discover_trucks(trucks, NYC, DiscoveryFilters(sort="reviews")).trucks
    by_distance = discover_trucks(trucks, NYC, DiscoveryFilters(sort="distance")).trucks

    assert [t.id for t in by_rating] == ["T2", "T1", "T3"]
    assert [t.id for t in by_reviews] == ["T3", "T1", "T2"]
    assert by_distance[0].id == "T1"


def test_owner_sees_active_neighbours_nearest_first():
    mine = _truck("MINE", 40.7128, -74.0060)
    candidates = [
        mine,
        _truck("FAR", 40.7400, -74.0060),
        _truck("NEAR", 40.7140, -74.0060),
        _truck("OFF", 40.7130, -74.0060, active=False),
        _truck("OUT", 40.8500, -74.0060),
    ]

    reference, nearby = nearby_trucks_for_owner(mine, candidates, radius_miles=3)

    assert reference == LocationPoint(40.7128, -74.0060)
    assert [t.id for t in nearby] == ["NEAR", "FAR"]


def test_owner_without_location_cannot_list_neighbours():
    with pytest.raises(LocationUnavailable):
        nearby_trucks_for_owner(_truck("MINE", None, None), [], radius_miles=3)
