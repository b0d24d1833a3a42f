"""Pydantic models for sign-in and profile endpoints."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ProfileModel(BaseModel):
    id: str
    email: str
    full_name: str
    profile_image_url: str = ""
    role: Literal["customer", "food_truck_owner", "admin"] = "customer"
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


class ProfileUpdateRequest(BaseModel):
    full_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    header_image_url: Optional[str] = None
    bio: Optional[str] = None
    notification_opt_in: Optional[bool] = None
    push_notifications_enabled: Optional[bool] = None
    email_notifications_enabled: Optional[bool] = None


class SessionResponse(BaseModel):
    profile: ProfileModel
    provider: str
    state: str
    changed_fields: list[str] = Field(default_factory=list)
    access_token: Optional[str] = None


class PasswordSignInRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(BaseModel):
    email: str
    password: str
    full_name: str
    role: Literal["customer", "food_truck_owner"] = "customer"


class FirebaseSignInRequest(BaseModel):
    id_token: str = Field(..., min_length=1)


class IdentityAssertionRequest(BaseModel):
    """An identity already verified by a trusted caller."""

    provider: Literal["supabase", "firebase"]
    external_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    email_verified: bool = False
