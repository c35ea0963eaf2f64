"""Core application configuration & tunable business rules.

Everything that may evolve (token lifetimes, booking rules, approval policy,
rate limits) is centralized here so it can be adjusted without diving into
service or endpoint logic. Values come from environment variables with
development defaults; the settings dicts are intentionally mutable so tests
can monkeypatch individual entries.
"""
from __future__ import annotations

import os

APP_ENV: str = os.getenv("APP_ENV", "development")

# ---------------------------------- Auth ---------------------------------- #
AUTH_SETTINGS: dict[str, str | int | bool] = {
	"jwt_secret": os.getenv("JWT_SECRET", "dev-only-change-me"),
	"jwt_algorithm": os.getenv("JWT_ALGORITHM", "HS256"),
	"token_expire_days": int(os.getenv("TOKEN_EXPIRE_DAYS", "7")),
	"cookie_name": "token",
	"cookie_secure": APP_ENV == "production",
	"bcrypt_rounds": int(os.getenv("BCRYPT_ROUNDS", "12")),
}

# -------------------------------- Bookings -------------------------------- #
BOOKING_SETTINGS: dict[str, bool | int | None] = {
	# Reject placements whose start date is already behind us (UTC).
	"reject_past_start": os.getenv("BOOKING_REJECT_PAST_START", "false").lower() == "true",
	# Upper bound on a single placement length; None disables the check.
	"max_booking_days": int(os.getenv("BOOKING_MAX_DAYS")) if os.getenv("BOOKING_MAX_DAYS") else None,
}

# ----------------------------- Advertisements ----------------------------- #
ADVERTISEMENT_SETTINGS: dict[str, bool] = {
	# New advertisements start approved; any later edit sends them back to review.
	"auto_approve_on_create": os.getenv("ADS_AUTO_APPROVE", "true").lower() == "true",
}

# --------------------------------- Reports -------------------------------- #
REPORT_SETTINGS: dict[str, int] = {
	"recent_window_days": 7,
	"default_page_size": 20,
	"max_page_size": 100,
}

# ------------------------------- Rate limits ------------------------------ #
RATE_LIMIT_SETTINGS: dict[str, dict[str, int]] = {
	"default": {"limit": 1000, "window_seconds": 3600},
	"auth": {"limit": 30, "window_seconds": 300},        # login / register attempts
	"booking": {"limit": 30, "window_seconds": 60},      # placement requests
	"report_intake": {"limit": 50, "window_seconds": 3600},  # public citizen reports per address
}

# -------------------------------- Network --------------------------------- #
NETWORK_SETTINGS: dict[str, list[str]] = {
	# Peers allowed to set X-Forwarded-For (addresses or CIDR ranges). Empty means
	# the header is ignored and callers are keyed by their socket address.
	"trusted_proxies": [p.strip() for p in os.getenv("TRUSTED_PROXIES", "").split(",") if p.strip()],
}

# -------------------------------- Database -------------------------------- #
DATABASE_SETTINGS: dict[str, float] = {
	# SQLite waits this long on a locked database before raising OperationalError
	"sqlite_busy_timeout_seconds": float(os.getenv("SQLITE_BUSY_TIMEOUT", "15")),
}

__all__ = [
	"APP_ENV",
	"AUTH_SETTINGS",
	"BOOKING_SETTINGS",
	"ADVERTISEMENT_SETTINGS",
	"REPORT_SETTINGS",
	"RATE_LIMIT_SETTINGS",
	"NETWORK_SETTINGS",
	"DATABASE_SETTINGS",
]
