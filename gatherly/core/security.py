"""
Security helpers for the job trigger endpoint.
"""

from __future__ import annotations

import hmac


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token of a ``Bearer <token>`` header, or None."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def verify_cron_secret(token: str | None, expected: str) -> bool:
    """Constant-time comparison of the presented token with the configured secret."""
    if not token or not expected:
        return False
    return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))
