from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..pipeline import FilterPipeline
from ..schemas import HealthResponse
from ..state import get_pipeline

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health(pipeline: FilterPipeline = Depends(get_pipeline)) -> HealthResponse:
    status = pipeline.status()
    return HealthResponse(
        status="OK" if status.detector_ready and status.overlays else "DEGRADED",
        detector_ready=status.detector_ready,
        detector_error=status.detector_error,
        overlays=status.overlays,
        timestamp=datetime.now(timezone.utc),
    )
