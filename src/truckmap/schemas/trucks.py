"""Pydantic request/response models for truck discovery endpoints."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class TruckLocationModel(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    zip_code: Optional[str] = None
    updated_at: Optional[str] = None


class TruckSummaryModel(BaseModel):
    id: str
    name: str
    is_active: bool
    cuisine_types: List[str]
    dietary_options: List[str]
    average_rating: float
    total_reviews: int
    location: Optional[TruckLocationModel] = None
    distance_miles: Optional[float] = Field(default=None, description="Recomputed on every request.")


class DiscoveryResponse(BaseModel):
    items: List[TruckSummaryModel]
    total: int
    total_candidates: int
    location_available: bool
    radius_miles: Optional[float] = None


class NearbyTrucksResponse(BaseModel):
    truck_id: str
    reference: TruckLocationModel
    radius_miles: float
    items: List[TruckSummaryModel]


class LocationUpdateRequest(BaseModel):
    latitude: Optional[float] = Field(default=None, description="Device latitude; omitted when unavailable.")
    longitude: Optional[float] = Field(default=None, description="Device longitude; omitted when unavailable.")
    address: Optional[str] = None
    zip_code: Optional[str] = None


class TruckEventRequest(BaseModel):
    event_type: Literal["truck_profile_view", "map_marker_click", "phone_click", "direction_click"]
    user_id: Optional[str] = None
    event_data: Optional[Dict[str, Any]] = None


class TruckEventResponse(BaseModel):
    truck_id: str
    event_type: str
    recorded: bool
