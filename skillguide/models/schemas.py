from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from skillguide.config import settings


# --- Requests ---


class GuideRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str = ""
    max_per_type: int = Field(default=settings.default_max_per_type, alias="maxPerType")

    @field_validator("topic", mode="before")
    @classmethod
    def _strip_topic(cls, value: Any) -> str:
        if not isinstance(value, str):
            return ""
        return value.strip()

    @field_validator("max_per_type", mode="before")
    @classmethod
    def _clamp_max_per_type(cls, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return settings.default_max_per_type
        if value != value or value in (float("inf"), float("-inf")):
            return settings.default_max_per_type
        return max(1, min(int(value), settings.max_per_type_limit))


# --- Responses ---


class HealthResponse(BaseModel):
    status: str
    service: str
