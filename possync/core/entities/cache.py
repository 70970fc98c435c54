"""Cached remote state."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class CachedState(BaseModel):
    """One cached value per scope key, replaced whole on every fetch."""

    scope_key: str
    value: dict[str, Any] = Field(default_factory=dict)
    fetched_at: datetime

    # Seeded from the static default rather than fetched
    is_default: bool = False
    # Marked for re-fetch; still usable as a degraded fallback
    invalidated: bool = False

    def age_seconds(self, now: datetime) -> float:
        return (now - self.fetched_at).total_seconds()

    def is_fresh(self, now: datetime, ttl_seconds: float) -> bool:
        if self.is_default or self.invalidated:
            return False
        return self.age_seconds(now) < ttl_seconds
