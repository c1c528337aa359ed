from __future__ import annotations

from functools import lru_cache
import random

from .assets import load_overlays
from .config import get_settings
from .detector import create_detector
from .pipeline import FilterPipeline


@lru_cache
def get_pipeline() -> FilterPipeline:
    settings = get_settings()
    return FilterPipeline(
        detector=create_detector(settings),
        overlays=load_overlays(),
        rng=random.Random(settings.seed),
        fetch_timeout=settings.fetch_timeout_seconds,
    )
