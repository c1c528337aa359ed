from __future__ import annotations

from dataclasses import dataclass
import logging
import random
from typing import Sequence

import cv2
import httpx
import numpy as np

from .compositor import OverlayChooser, Placement, apply_overlays
from .detector import DetectorProtocol, FaceRegion
from .sources import SourceImage, resolve

logger = logging.getLogger(__name__)


@dataclass
class FilterResult:
    source: SourceImage
    regions: list[FaceRegion]
    placements: list[Placement]


@dataclass
class PipelineStatus:
    detector_ready: bool
    detector_error: str | None
    overlays: int


def to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


class FilterPipeline:
    """Decode -> detect -> overlay, sharing one detector and one set of overlays.

    Nothing here is mutated after construction apart from the random
    source, so one instance serves every request.
    """

    def __init__(
        self,
        detector: DetectorProtocol,
        overlays: Sequence[np.ndarray],
        http_client: httpx.Client | None = None,
        rng: random.Random | None = None,
        fetch_timeout: float = 30.0,
    ) -> None:
        self.detector = detector
        self.overlays = tuple(overlays)
        self.http_client = http_client
        self.fetch_timeout = fetch_timeout
        self._rng = rng or random.Random()

    def status(self) -> PipelineStatus:
        detector_status = self.detector.status()
        return PipelineStatus(
            detector_ready=detector_status.ready,
            detector_error=detector_status.error,
            overlays=len(self.overlays),
        )

    def new_chooser(self) -> random.Random:
        return random.Random(self._rng.getrandbits(64))

    def detect(self, image: np.ndarray) -> list[FaceRegion]:
        return self.detector.detect(to_gray(image))

    def apply(
        self,
        image: np.ndarray,
        scale: float,
        chooser: OverlayChooser | None = None,
    ) -> tuple[list[FaceRegion], list[Placement]]:
        regions = self.detect(image)
        placements = apply_overlays(image, regions, self.overlays, scale, chooser or self.new_chooser())
        logger.info(
            "Faces detected: %d, overlays placed: %d",
            len(regions),
            len(placements),
            extra={"faces": len(regions), "placements": len(placements), "scale": scale},
        )
        return regions, placements

    def run(self, locator: str, scale: float, chooser: OverlayChooser | None = None) -> FilterResult:
        source = resolve(locator, client=self.http_client, timeout=self.fetch_timeout)
        regions, placements = self.apply(source.image, scale, chooser)
        return FilterResult(source=source, regions=regions, placements=placements)
