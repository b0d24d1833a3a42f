"""Identity reconciliation across Supabase Auth and Firebase Auth."""

from .providers import (
    identity_from_firebase_token,
    identity_from_supabase_user,
    normalize_identity,
    verify_firebase_token,
)
from .reconciliation import build_new_profile, default_full_name, merge_identity
from .session import ProfileState, Session, SessionManager

__all__ = [
    "ProfileState",
    "Session",
    "SessionManager",
    "build_new_profile",
    "default_full_name",
    "identity_from_firebase_token",
    "identity_from_supabase_user",
    "merge_identity",
    "normalize_identity",
    "verify_firebase_token",
]
