"""Domain models for trucks, locations and user identities."""

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Union

Role = Literal["customer", "food_truck_owner", "admin"]
ProviderKind = Literal["supabase", "firebase"]


@dataclass(slots=True, frozen=True)
class LocationPoint:
    """A validated point in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(slots=True)
class TruckLocation:
    """A stored location row; coordinates are kept exactly as stored."""

    latitude: Any
    longitude: Any
    address: Optional[str] = None
    zip_code: Optional[str] = None
    id: Optional[str] = None
    is_current: bool = True
    updated_at: Optional[str] = None


@dataclass(slots=True)
class TruckCandidate:
    """A food truck being evaluated by discovery filters."""

    id: str
    name: str
    location: Optional[TruckLocation]
    is_active: bool = False
    cuisine_types: list[str] = field(default_factory=list)
    dietary_options: list[str] = field(default_factory=list)
    average_rating: float = 0.0
    total_reviews: int = 0
    owner_id: Optional[str] = None
    raw: dict = field(default_factory=dict)


@dataclass(slots=True)
class Profile:
    """Canonical profile row, one per person regardless of auth provider."""

    id: str
    email: str
    full_name: str
    profile_image_url: str = ""
    role: Role = "customer"
    created_at: Optional[str] = None
    is_blocked: bool = False
    referral_code: str = ""
    referred_by: str = ""
    header_image_url: str = ""
    bio: str = ""
    notification_opt_in: bool = False
    push_notifications_enabled: bool = False
    email_notifications_enabled: bool = False
    subscription_tier: str = ""


@dataclass(slots=True, frozen=True)
class SupabaseIdentity:
    """Identity asserted by Supabase Auth (provider A)."""

    user_id: str
    email: Optional[str]
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    email_verified: bool = False
    kind: Literal["supabase"] = "supabase"


@dataclass(slots=True, frozen=True)
class FirebaseIdentity:
    """Identity asserted by Firebase Auth (provider B)."""

    uid: str
    email: Optional[str]
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    email_verified: bool = False
    kind: Literal["firebase"] = "firebase"


IdentityAssertion = Union[SupabaseIdentity, FirebaseIdentity]


@dataclass(slots=True, frozen=True)
class ExternalIdentity:
    """Provider-neutral identity used by reconciliation."""

    external_id: str
    email: Optional[str]
    display_name: Optional[str]
    avatar_url: Optional[str]
    provider: ProviderKind
    email_verified: bool = False
