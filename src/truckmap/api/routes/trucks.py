"""Food truck discovery and location endpoints."""

from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException, Path, Query, status

from ...config import settings
from ...data import trucks_repository
from ...errors import LocationUnavailable, MalformedCoordinate
from ...models.domain import LocationPoint, TruckCandidate, TruckLocation
from ...schemas.trucks import (
    DiscoveryResponse,
    LocationUpdateRequest,
    NearbyTrucksResponse,
    TruckEventRequest,
    TruckEventResponse,
    TruckLocationModel,
    TruckSummaryModel,
)
from ...services import analytics
from ...services import favorites as favorites_service
from ...services.discovery import DiscoveryFilters, discover_trucks, nearby_trucks_for_owner
from ...services.geospatial import candidate_distance, clamp_radius, coerce_point

router = APIRouter(prefix="/trucks", tags=["trucks"])


def _location_model(location: Optional[TruckLocation]) -> Optional[TruckLocationModel]:
    if location is None:
        return None
    try:
        point = coerce_point(location.latitude, location.longitude)
        latitude, longitude = point.latitude, point.longitude
    except MalformedCoordinate:
        latitude = longitude = None
    return TruckLocationModel(
        latitude=latitude,
        longitude=longitude,
        address=location.address,
        zip_code=location.zip_code,
        updated_at=location.updated_at,
    )


def _summary(truck: TruckCandidate, distance: Optional[float] = None) -> TruckSummaryModel:
    return TruckSummaryModel(
        id=truck.id,
        name=truck.name,
        is_active=truck.is_active,
        cuisine_types=truck.cuisine_types,
        dietary_options=truck.dietary_options,
        average_rating=truck.average_rating,
        total_reviews=truck.total_reviews,
        location=_location_model(truck.location),
        distance_miles=round(distance, 2) if distance is not None else None,
    )


def _reference_point(lat: Optional[float], lng: Optional[float]) -> Optional[LocationPoint]:
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="lat and lng must be supplied together.",
        )
    try:
        return coerce_point(lat, lng)
    except MalformedCoordinate as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


def _load_candidates(active_only: bool = False) -> list[TruckCandidate]:
    try:
        return trucks_repository.load_truck_candidates(active_only=active_only)
    except ConnectionError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


@router.get("/discover", response_model=DiscoveryResponse, status_code=status.HTTP_200_OK)
def discover(
    lat: float | None = Query(default=None, description="Viewer latitude; omit when location is unavailable"),
    lng: float | None = Query(default=None, description="Viewer longitude; omit when location is unavailable"),
    radius: float | None = Query(default=None, gt=0, description="Radius in miles, bounded to the configured range"),
    search: str = Query(default="", description="Matches name, cuisine, address or zip code"),
    cuisine: List[str] = Query(default=[], description="Keep trucks serving any of these cuisines"),
    dietary: List[str] = Query(default=[], description="Keep trucks offering any of these dietary options"),
    zip_code: str | None = Query(default=None),
    online_only: bool = Query(default=False),
    favorites_only: bool = Query(default=False),
    user_id: str | None = Query(default=None, description="Viewer id, needed for favorites_only"),
    sort: Literal["none", "distance", "rating", "reviews"] = Query(default="none"),
) -> DiscoveryResponse:
    reference = _reference_point(lat, lng)
    favorites: frozenset[str] = frozenset()
    if favorites_only:
        if not user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="user_id is required when favorites_only is set.",
            )
        favorites = frozenset(favorites_service.get_favorites(user_id))

    filters = DiscoveryFilters(
        search=search.strip(),
        cuisines=tuple(cuisine),
        dietary=tuple(dietary),
        zip_code=zip_code or None,
        online_only=online_only,
        favorites_only=favorites_only,
        favorites=favorites,
        radius_miles=clamp_radius(radius),
        sort=sort,
    )
    result = discover_trucks(_load_candidates(), reference, filters)
    return DiscoveryResponse(
        items=[_summary(truck, result.distances.get(truck.id)) for truck in result.trucks],
        total=len(result.trucks),
        total_candidates=result.total_candidates,
        location_available=result.location_available,
        radius_miles=result.radius_miles,
    )


@router.get("/{truck_id}/nearby", response_model=NearbyTrucksResponse, status_code=status.HTTP_200_OK)
def nearby_for_owner(
    truck_id: str = Path(..., description="The owner's truck"),
    radius: float | None = Query(default=None, gt=0, le=50),
) -> NearbyTrucksResponse:
    candidates = _load_candidates(active_only=True)
    owner_truck = next((truck for truck in candidates if truck.id == truck_id), None)
    if owner_truck is None:
        try:
            owner_truck = trucks_repository.get_truck(truck_id)
        except ConnectionError as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if owner_truck is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Truck '{truck_id}' not found.")

    effective_radius = radius if radius is not None else settings.owner_nearby_radius_miles
    try:
        reference, nearby = nearby_trucks_for_owner(owner_truck, candidates, effective_radius)
    except (LocationUnavailable, MalformedCoordinate) as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Truck location unavailable: {exc}",
        ) from exc

    return NearbyTrucksResponse(
        truck_id=truck_id,
        reference=TruckLocationModel(latitude=reference.latitude, longitude=reference.longitude),
        radius_miles=effective_radius,
        items=[_summary(truck, candidate_distance(reference, truck)) for truck in nearby],
    )


@router.put("/{truck_id}/location", response_model=TruckLocationModel, status_code=status.HTTP_200_OK)
def update_location(
    payload: LocationUpdateRequest,
    truck_id: str = Path(..., description="Truck whose current location moves"),
) -> TruckLocationModel:
    if payload.latitude is None or payload.longitude is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Location unavailable: latitude and longitude are required.",
        )
    point = _reference_point(payload.latitude, payload.longitude)
    try:
        location = trucks_repository.update_truck_location(
            truck_id,
            point,
            address=payload.address,
            zip_code=payload.zip_code,
        )
    except ConnectionError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return _location_model(location)


@router.post("/{truck_id}/events", response_model=TruckEventResponse, status_code=status.HTTP_202_ACCEPTED)
def record_event(
    payload: TruckEventRequest,
    truck_id: str = Path(..., description="Truck the customer interacted with"),
) -> TruckEventResponse:
    """Best-effort analytics; a storage failure never fails the request."""
    recorded = analytics.track_event(
        payload.event_type,
        user_id=payload.user_id,
        food_truck_id=truck_id,
        event_data=payload.event_data,
    )
    return TruckEventResponse(truck_id=truck_id, event_type=payload.event_type, recorded=recorded)
