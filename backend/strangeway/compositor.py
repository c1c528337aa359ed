from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Protocol, Sequence, TypeVar

import cv2
import numpy as np

from .detector import FaceRegion

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Upper bound for the enlargement factor accepted from the CLI, HTTP and settings
MAX_SCALE = 10.0


class OverlayChooser(Protocol):
    def choice(self, seq: Sequence[T]) -> T:
        ...


@dataclass(frozen=True)
class Placement:
    overlay_index: int
    x: int
    y: int
    width: int
    height: int


def enlarged_footprint(width: int, height: int, scale: float) -> tuple[int, int]:
    return width + int(width * scale), height + int(height * scale)


def plan_placement(region: FaceRegion, scale: float, overlay_index: int = 0) -> Placement:
    """Centre the enlarged footprint on the detected box.

    The offset may push the placement off the top/left edge; the
    compositor clips it.
    """
    width, height = enlarged_footprint(region.width, region.height, scale)
    x_offset = (width - region.width) // 2
    y_offset = (height - region.height) // 2
    return Placement(
        overlay_index=overlay_index,
        x=region.x - x_offset,
        y=region.y - y_offset,
        width=width,
        height=height,
    )


def alpha_composite(base: np.ndarray, overlay: np.ndarray, x: int, y: int) -> None:
    """Blend a BGRA ``overlay`` over ``base`` (BGR or BGRA) in place at (x, y)."""
    base_h, base_w = base.shape[:2]
    over_h, over_w = overlay.shape[:2]
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + over_w, base_w), min(y + over_h, base_h)
    if x1 <= x0 or y1 <= y0:
        return

    src = overlay[y0 - y : y1 - y, x0 - x : x1 - x].astype(np.float32)
    dst = base[y0:y1, x0:x1]
    src_alpha = src[..., 3:4] / 255.0
    src_color = src[..., :3]
    dst_color = dst[..., :3].astype(np.float32)

    if dst.shape[2] == 4:
        dst_alpha = dst[..., 3:4].astype(np.float32) / 255.0
        out_alpha = src_alpha + dst_alpha * (1.0 - src_alpha)
        safe_alpha = np.where(out_alpha > 0.0, out_alpha, 1.0)
        out_color = (src_color * src_alpha + dst_color * dst_alpha * (1.0 - src_alpha)) / safe_alpha
        dst[..., 3] = np.clip(np.rint(out_alpha[..., 0] * 255.0), 0, 255).astype(np.uint8)
    else:
        out_color = src_color * src_alpha + dst_color * (1.0 - src_alpha)
    dst[..., :3] = np.clip(np.rint(out_color), 0, 255).astype(np.uint8)


def apply_overlays(
    image: np.ndarray,
    regions: Sequence[FaceRegion],
    overlays: Sequence[np.ndarray],
    scale: float,
    chooser: OverlayChooser,
) -> list[Placement]:
    if not overlays:
        return []
    indices = range(len(overlays))
    placements: list[Placement] = []
    for region in regions:
        placement = plan_placement(region, scale, overlay_index=chooser.choice(indices))
        if placement.width <= 0 or placement.height <= 0:
            logger.debug("Skipping zero-sized region %s", region)
            continue
        # Stretched to the footprint; aspect ratio is not preserved
        scaled = cv2.resize(
            overlays[placement.overlay_index],
            (placement.width, placement.height),
            interpolation=cv2.INTER_CUBIC,
        )
        alpha_composite(image, scaled, placement.x, placement.y)
        placements.append(placement)
    return placements
