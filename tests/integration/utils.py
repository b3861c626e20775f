"""Shared helpers for integration tests."""

from __future__ import annotations

from mealweek.config import get_settings


def auth_headers(user_id: int = 1) -> dict[str, str]:
    headers = {"X-User-ID": str(user_id)}
    token = get_settings().api_token
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers
