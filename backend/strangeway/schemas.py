from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    detector_ready: bool
    detector_error: str | None = None
    overlays: int
    timestamp: datetime
