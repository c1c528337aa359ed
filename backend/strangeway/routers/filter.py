from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response

from ..compositor import MAX_SCALE
from ..config import get_settings
from ..errors import NoQueryParameters, UnsupportedLocator
from ..pipeline import FilterPipeline
from ..sinks import encode_for_http
from ..sources import is_url
from ..state import get_pipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
def filter_image(
    url: str | None = None,
    scale: float | None = Query(default=None, ge=0.0, le=MAX_SCALE, allow_inf_nan=False),
    pipeline: FilterPipeline = Depends(get_pipeline),
) -> Response:
    if not url:
        raise NoQueryParameters("Missing query parameters, expected ?url=<image url>&scale=<float>")
    if not is_url(url):
        raise UnsupportedLocator(f"Only http(s) image URLs are accepted: {url}")
    if scale is None:
        scale = get_settings().default_scale

    result = pipeline.run(url, scale)
    encoded = encode_for_http(result.source.image, result.source.stem)
    return Response(
        content=encoded.content,
        media_type=encoded.media_type,
        headers={
            "Content-Disposition": encoded.content_disposition,
            "X-Faces-Detected": str(len(result.regions)),
        },
    )
