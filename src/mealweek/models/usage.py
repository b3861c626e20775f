"""Usage quota models."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UsageSnapshot(BaseModel):
    """Consumption of one counter for the current period (``limit`` None = unlimited)."""

    counter: str
    period_start: date
    used: int
    limit: Optional[int] = None
    remaining: Optional[int] = None

    model_config = ConfigDict(frozen=True)


__all__ = ["UsageSnapshot"]
