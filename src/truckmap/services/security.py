"""Login rate limiting, security audit logging and input screening."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Literal, Optional

import httpx

from ..config import settings
from ..db.supabase import get_supabase_client

RATE_LIMIT_TABLE = "rate_limit_tracking"
AUDIT_LOG_TABLE = "security_audit_log"
CHANGELOG_TABLE = "system_changelog"

EventStatus = Literal["success", "failed", "blocked"]
ChangeType = Literal["api_key", "config", "feature", "security", "email"]
Severity = Literal["low", "medium", "high", "critical"]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SPECIAL_CHARACTER_PATTERN = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")
SQL_KEYWORDS = (
    "SELECT",
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "CREATE",
    "ALTER",
    "EXEC",
    "UNION",
    "--",
    ";--",
    "/*",
    "*/",
)
XSS_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (r"<script", r"javascript:", r"on\w+\s*=", r"<iframe", r"<object", r"<embed")
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RateLimitStatus:
    allowed: bool
    remaining_attempts: Optional[int] = None
    blocked_until: Optional[datetime] = None

    def minutes_remaining(self, now: Optional[datetime] = None) -> int:
        if not self.blocked_until:
            return settings.login_lockout_minutes
        now = now or datetime.now(timezone.utc)
        return max(1, math.ceil((self.blocked_until - now).total_seconds() / 60))


@dataclass(slots=True)
class PasswordCheck:
    is_strong: bool
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class InputValidation:
    valid: bool
    sanitized: str
    errors: list[str] = field(default_factory=list)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def log_security_event(
    user_id: Optional[str],
    action: str,
    status: EventStatus,
    details: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> None:
    """Append a row to the security audit log. Failures are logged, never raised."""
    supabase = get_supabase_client()
    if not supabase:
        logger.info(f"Security event (not persisted): {action} {status}")
        return
    try:
        supabase.table(AUDIT_LOG_TABLE).insert(
            {
                "user_id": user_id,
                "action": action,
                "status": status,
                "ip_address": ip_address or "unknown",
                "user_agent": user_agent,
                "details": details,
            }
        ).execute()
    except Exception as e:
        logger.error(f"Failed to log security event: {e}")


def check_rate_limit(
    identifier: str,
    action_type: str,
    max_attempts: Optional[int] = None,
    now: Optional[datetime] = None,
) -> RateLimitStatus:
    """Count an attempt for ``identifier`` and decide whether it may proceed.

    Bookkeeping failures fail open so an unavailable table never locks
    everyone out.
    """
    max_attempts = max_attempts or settings.login_max_attempts
    now = now or datetime.now(timezone.utc)
    supabase = get_supabase_client()
    if not supabase:
        return RateLimitStatus(allowed=True)

    window_start = now - timedelta(seconds=settings.rate_limit_window_seconds)
    try:
        # a block outlives the counting window, so look for one without it
        blocked = (
            supabase.table(RATE_LIMIT_TABLE)
            .select("*")
            .eq("identifier", identifier)
            .eq("action_type", action_type)
            .gt("blocked_until", now.isoformat())
            .limit(1)
            .execute()
        )
        active_block = (blocked.data or [None])[0]
        if active_block:
            return RateLimitStatus(allowed=False, blocked_until=_parse_timestamp(active_block["blocked_until"]))

        response = (
            supabase.table(RATE_LIMIT_TABLE)
            .select("*")
            .eq("identifier", identifier)
            .eq("action_type", action_type)
            .gte("window_start", window_start.isoformat())
            .limit(1)
            .execute()
        )
        existing = (response.data or [None])[0]

        if existing:
            attempt_count = int(existing.get("attempt_count") or 0)
            if attempt_count >= max_attempts:
                blocked_until = now + timedelta(minutes=settings.login_lockout_minutes)
                supabase.table(RATE_LIMIT_TABLE).update(
                    {"blocked_until": blocked_until.isoformat(), "attempt_count": attempt_count + 1}
                ).eq("id", existing["id"]).execute()
                logger.warning(f"Rate limit exceeded for {action_type} by {identifier}")
                return RateLimitStatus(allowed=False, blocked_until=blocked_until)

            supabase.table(RATE_LIMIT_TABLE).update({"attempt_count": attempt_count + 1}).eq(
                "id", existing["id"]
            ).execute()
            return RateLimitStatus(allowed=True, remaining_attempts=max_attempts - (attempt_count + 1))

        supabase.table(RATE_LIMIT_TABLE).insert(
            {
                "identifier": identifier,
                "action_type": action_type,
                "attempt_count": 1,
                "window_start": now.isoformat(),
            }
        ).execute()
        return RateLimitStatus(allowed=True, remaining_attempts=max_attempts - 1)
    except Exception as e:
        logger.error(f"Rate limit check failed: {e}")
        return RateLimitStatus(allowed=True)


def reset_rate_limit(identifier: str, action_type: str) -> None:
    supabase = get_supabase_client()
    if not supabase:
        return
    try:
        supabase.table(RATE_LIMIT_TABLE).delete().eq("identifier", identifier).eq(
            "action_type", action_type
        ).execute()
    except Exception as e:
        logger.error(f"Failed to reset rate limit: {e}")


def sanitize_input(value: str) -> str:
    cleaned = re.sub(r"[<>]", "", value)
    cleaned = re.sub(r"javascript:", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"on\w+=", "", cleaned, flags=re.IGNORECASE)
    return cleaned.strip()


def validate_email(email: str) -> bool:
    return bool(email and EMAIL_PATTERN.match(email))


def is_strong_password(password: str) -> PasswordCheck:
    errors: list[str] = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    if not SPECIAL_CHARACTER_PATTERN.search(password):
        errors.append("Password must contain at least one special character")
    return PasswordCheck(is_strong=not errors, errors=errors)


def detect_sql_injection(value: str) -> bool:
    upper_value = value.upper()
    return any(keyword in upper_value for keyword in SQL_KEYWORDS)


def detect_xss(value: str) -> bool:
    return any(pattern.search(value) for pattern in XSS_PATTERNS)


def validate_and_sanitize_user_input(value: str, field_name: str) -> InputValidation:
    errors: list[str] = []

    if detect_sql_injection(value):
        errors.append(f"{field_name} contains potentially malicious SQL patterns")
        log_security_event(None, "sql_injection_attempt", "blocked", {"field": field_name, "input": value[:50]})

    if detect_xss(value):
        errors.append(f"{field_name} contains potentially malicious script patterns")
        log_security_event(None, "xss_attempt", "blocked", {"field": field_name, "input": value[:50]})

    return InputValidation(valid=not errors, sanitized=sanitize_input(value), errors=errors)


def send_admin_notification(payload: dict[str, Any]) -> bool:
    """POST a changelog payload to the admin notification edge function."""
    url = settings.resolved_admin_notification_url
    if not url:
        logger.warning("Admin notification URL not configured; skipping notification")
        return False

    headers = {"Content-Type": "application/json"}
    if settings.supabase_key:
        headers["Authorization"] = f"Bearer {settings.supabase_key}"
    try:
        response = httpx.post(
            url,
            json=payload,
            headers=headers,
            timeout=settings.admin_notification_timeout_seconds,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Failed to send admin notification: {e}")
        return False

    logger.info("Admin notification sent successfully")
    return True


def log_changelog_entry(
    change_type: ChangeType,
    title: str,
    description: str,
    severity: Severity,
    requires_notification: bool = False,
    old_value: Optional[str] = None,
    new_value: Optional[str] = None,
    changed_by: Optional[str] = None,
) -> dict[str, Any]:
    """Record a system change and optionally notify administrators.

    Returns ``{"success": bool, "data" | "error": ...}``.
    """
    supabase = get_supabase_client()
    if not supabase:
        return {"success": False, "error": "Supabase not configured"}

    try:
        response = (
            supabase.table(CHANGELOG_TABLE)
            .insert(
                {
                    "change_type": change_type,
                    "title": title,
                    "description": description,
                    "changed_by": changed_by,
                    "severity": severity,
                    "requires_notification": requires_notification,
                    "old_value": old_value,
                    "new_value": new_value,
                }
            )
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to log changelog entry: {e}")
        return {"success": False, "error": str(e)}

    entry = (response.data or [None])[0]
    if requires_notification and entry:
        sent = send_admin_notification(
            {
                "changeType": change_type,
                "title": title,
                "description": description,
                "severity": severity,
                "oldValue": old_value,
                "newValue": new_value,
            }
        )
        if sent and entry.get("id") is not None:
            try:
                supabase.table(CHANGELOG_TABLE).update({"notification_sent": True}).eq("id", entry["id"]).execute()
                entry["notification_sent"] = True
            except Exception as e:
                logger.error(f"Failed to mark changelog notification as sent: {e}")

    return {"success": True, "data": entry}
