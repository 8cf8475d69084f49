"""Request guards: optional API keys for every route, admin token for uploads."""

from __future__ import annotations

import hmac
import os
from typing import FrozenSet

from fastapi import Header, HTTPException, Query, status


def configured_api_keys() -> FrozenSet[str]:
    """Keys from ``API_KEYS`` (comma separated) plus the single ``API_KEY``."""

    raw = [os.getenv("API_KEY", ""), *os.getenv("API_KEYS", "").split(",")]
    return frozenset(key.strip() for key in raw if key.strip())


def require_api_key(
    x_api_key: str | None = Header(default=None, alias="x-api-key"),
    api_key_query: str | None = Query(default=None, alias="apiKey"),
) -> str | None:
    """Enforced only when ``REQUIRE_API_KEY=1``; returns the presented key."""

    presented = x_api_key or api_key_query
    if os.getenv("REQUIRE_API_KEY", "0") != "1":
        return presented

    if presented is None or presented not in configured_api_keys():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api key"
        )
    return presented


def require_admin_token(
    x_admin_token: str | None = Header(default=None, alias="x-admin-token"),
) -> str:
    """Guard for baseline uploads. Returns an actor tag for audit logging."""

    expected = os.getenv("ADMIN_TOKEN")
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="admin token not configured",
        )
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid admin token"
        )
    return f"admin:{x_admin_token[-4:]}"


__all__ = ["configured_api_keys", "require_admin_token", "require_api_key"]
