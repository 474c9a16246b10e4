"""Application settings (Pydantic).

Defaults live on the models; selected environment variables override them:
- LINK_PLANNER_LOG_LEVEL
- LINK_PLANNER_SAMPLE_COUNT
- LINK_PLANNER_ELEVATION_URL
- LINK_PLANNER_ELEVATION_TIMEOUT
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field

OPEN_ELEVATION_URL = "https://api.open-elevation.com/api/v1/lookup"


class ElevationApiSettings(BaseModel):
    url: str = OPEN_ELEVATION_URL
    timeout_seconds: float = Field(default=15.0, gt=0)
    user_agent: str = "link-planner/0.1.0"


class LinkPlannerSettings(BaseModel):
    log_level: str = "INFO"
    default_sample_count: int = Field(default=100, ge=2)
    elevation_api: ElevationApiSettings = Field(default_factory=ElevationApiSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto the raw settings payload."""
    log_level = os.getenv("LINK_PLANNER_LOG_LEVEL")
    if log_level:
        data["log_level"] = log_level

    sample_count = os.getenv("LINK_PLANNER_SAMPLE_COUNT")
    if sample_count:
        data["default_sample_count"] = int(sample_count)

    api = data.setdefault("elevation_api", {})
    url = os.getenv("LINK_PLANNER_ELEVATION_URL")
    if url:
        api["url"] = url
    timeout = os.getenv("LINK_PLANNER_ELEVATION_TIMEOUT")
    if timeout:
        api["timeout_seconds"] = float(timeout)

    return data


@lru_cache(maxsize=1)
def get_settings() -> LinkPlannerSettings:
    """Load settings once per process (call ``get_settings.cache_clear()`` in tests)."""
    return LinkPlannerSettings.model_validate(_apply_env_overrides({}))
