from __future__ import annotations

from functools import lru_cache
from importlib import resources
import logging
from pathlib import Path

import cv2
import numpy as np

from .errors import DecodeFailed

logger = logging.getLogger(__name__)

OVERLAY_FILES = ("strangeway0.png", "strangeway1.png")


def to_bgra(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    if image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    return image


def decode_overlay(data: bytes, name: str = "<bytes>") -> np.ndarray:
    overlay = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if overlay is None:
        raise DecodeFailed(f"Failed to decode overlay asset: {name}")
    if overlay.dtype != np.uint8:
        overlay = cv2.convertScaleAbs(overlay, alpha=255.0 / 65535.0)
    return to_bgra(overlay)


def load_overlay(path: Path) -> np.ndarray:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise DecodeFailed(f"Failed to read overlay asset {path}: {exc}") from exc
    return decode_overlay(data, name=str(path))


@lru_cache
def load_overlays() -> tuple[np.ndarray, ...]:
    """Decode the bundled overlays once; the arrays are shared read-only."""
    package_assets = resources.files(__package__).joinpath("assets")
    overlays = []
    for name in OVERLAY_FILES:
        overlay = decode_overlay(package_assets.joinpath(name).read_bytes(), name=name)
        overlay.flags.writeable = False
        overlays.append(overlay)
        logger.info("Overlay loaded: %s %dx%d", name, overlay.shape[1], overlay.shape[0])
    return tuple(overlays)
