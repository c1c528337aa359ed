from __future__ import annotations

from pathlib import Path
from typing import Sequence

import cv2
import numpy as np
import pytest

from strangeway.detector import DetectorStatus, FaceRegion


class FakeDetector:
    def __init__(self, regions: Sequence[FaceRegion] = ()) -> None:
        self.regions = list(regions)
        self.calls: list[np.ndarray] = []

    def detect(self, gray: np.ndarray) -> list[FaceRegion]:
        self.calls.append(gray)
        return list(self.regions)

    def status(self) -> DetectorStatus:
        return DetectorStatus(ready=True, error=None, model_path=Path("fake-cascade.xml"))


class FixedChooser:
    def __init__(self, index: int) -> None:
        self.index = index
        self.calls = 0

    def choice(self, seq):
        self.calls += 1
        return seq[self.index]


def solid_bgra(color: tuple[int, int, int], size: int = 16, alpha: int = 255) -> np.ndarray:
    overlay = np.zeros((size, size, 4), dtype=np.uint8)
    overlay[..., :3] = color
    overlay[..., 3] = alpha
    return overlay


def png_bytes(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def overlays() -> tuple[np.ndarray, np.ndarray]:
    # BGR: red and blue
    return solid_bgra((0, 0, 255)), solid_bgra((255, 0, 0))


@pytest.fixture
def canvas() -> np.ndarray:
    return np.zeros((200, 200, 3), dtype=np.uint8)


@pytest.fixture
def one_face() -> FaceRegion:
    return FaceRegion(x=100, y=100, width=40, height=40, score=5.0)


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    image = np.full((120, 160, 3), 90, dtype=np.uint8)
    path = tmp_path / "portrait.png"
    path.write_bytes(png_bytes(image))
    return path
