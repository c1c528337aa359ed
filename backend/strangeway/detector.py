from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import cv2
import numpy as np

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)

DEFAULT_CASCADE = "haarcascade_frontalface_default.xml"


@dataclass(frozen=True)
class DetectorConfig:
    min_face_size: int = 20
    score_threshold: float = 2.0
    # Per-level shrink of the image pyramid, as a fraction (0.8 -> 1.25x steps)
    pyramid_scale_factor: float = 0.8
    # Reported only: OpenCV fixes the cascade window stride itself
    slide_window_step: int = 4
    min_neighbors: int = 3

    @property
    def cascade_scale_factor(self) -> float:
        return 1.0 / self.pyramid_scale_factor


@dataclass(frozen=True)
class FaceRegion:
    x: int
    y: int
    width: int
    height: int
    score: float


@dataclass
class DetectorStatus:
    ready: bool
    error: str | None
    model_path: Path


class DetectorProtocol(Protocol):
    def detect(self, gray: np.ndarray) -> list[FaceRegion]:
        ...

    def status(self) -> DetectorStatus:
        ...


def default_cascade_path() -> Path:
    return Path(cv2.data.haarcascades) / DEFAULT_CASCADE


class HaarCascadeDetector:
    def __init__(self, config: DetectorConfig | None = None, model_path: Path | None = None) -> None:
        self.config = config or DetectorConfig()
        self.model_path = Path(model_path) if model_path else default_cascade_path()
        self._cascade: cv2.CascadeClassifier | None = None
        self._load_error: str | None = None
        self._load_cascade()

    def _load_cascade(self) -> None:
        if not self.model_path.exists():
            self._load_error = f"Missing cascade file: {self.model_path}"
            logger.error(self._load_error)
            return
        try:
            cascade = cv2.CascadeClassifier(str(self.model_path))
        except cv2.error as exc:
            self._load_error = f"Failed to parse cascade {self.model_path}: {exc}"
            logger.error(self._load_error)
            return
        if cascade.empty():
            self._load_error = f"Failed to load cascade from: {self.model_path}"
            logger.error(self._load_error)
            return
        self._cascade = cascade
        logger.info(
            "Cascade loaded: %s (min_size=%d, scale_factor=%.3f, min_neighbors=%d, score_thresh=%.2f)",
            self.model_path,
            self.config.min_face_size,
            self.config.cascade_scale_factor,
            self.config.min_neighbors,
            self.config.score_threshold,
        )

    def status(self) -> DetectorStatus:
        return DetectorStatus(
            ready=self._cascade is not None,
            error=self._load_error,
            model_path=self.model_path,
        )

    def io_report(self) -> dict[str, object]:
        return {
            "backend": "haar-cascade",
            "model_path": str(self.model_path),
            "min_face_size": self.config.min_face_size,
            "score_threshold": self.config.score_threshold,
            "pyramid_scale_factor": self.config.pyramid_scale_factor,
            "slide_window_step": self.config.slide_window_step,
            "min_neighbors": self.config.min_neighbors,
            "ready": self._cascade is not None,
            "error": self._load_error,
        }

    def detect(self, gray: np.ndarray) -> list[FaceRegion]:
        if self._cascade is None or gray.size == 0:
            return []
        if gray.ndim == 3:
            code = cv2.COLOR_BGRA2GRAY if gray.shape[2] == 4 else cv2.COLOR_BGR2GRAY
            gray = cv2.cvtColor(gray, code)
        min_size = self.config.min_face_size
        objects, _, level_weights = self._cascade.detectMultiScale3(
            gray,
            scaleFactor=self.config.cascade_scale_factor,
            minNeighbors=self.config.min_neighbors,
            minSize=(min_size, min_size),
            outputRejectLevels=True,
        )
        if len(objects) == 0:
            return []
        weights = np.asarray(level_weights, dtype=np.float64).reshape(-1)
        results: list[FaceRegion] = []
        for (x, y, w, h), score in zip(objects, weights):
            if score < self.config.score_threshold:
                continue
            if w <= 0 or h <= 0:
                continue
            results.append(FaceRegion(x=int(x), y=int(y), width=int(w), height=int(h), score=float(score)))
        return results


def create_detector(settings: Settings) -> DetectorProtocol:
    return HaarCascadeDetector(config=settings.detector_config, model_path=settings.cascade_path)
