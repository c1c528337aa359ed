from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import uuid

import cv2
import numpy as np

from .errors import EncodeFailed

logger = logging.getLogger(__name__)

JPEG_EXTENSIONS = {"jpg", "jpeg", "jpe"}


@dataclass
class EncodedImage:
    content: bytes
    media_type: str
    filename: str

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


def output_path(stem: str, extension: str, directory: str | Path = ".", uid: uuid.UUID | None = None) -> Path:
    uid = uid or uuid.uuid4()
    return Path(directory) / f"{stem}_{uid}.{extension}"


def encode_image(image: np.ndarray, extension: str) -> bytes:
    extension = extension.lower().lstrip(".")
    if extension in JPEG_EXTENSIONS and image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    try:
        ok, buffer = cv2.imencode(f".{extension}", image)
    except cv2.error as exc:
        raise EncodeFailed(f"Cannot encode image as .{extension}: {exc}") from exc
    if not ok:
        raise EncodeFailed(f"Cannot encode image as .{extension}")
    return buffer.tobytes()


def save_image(image: np.ndarray, stem: str, extension: str, directory: str | Path = ".") -> Path:
    target = output_path(stem, extension, directory)
    content = encode_image(image, extension)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError as exc:
        raise EncodeFailed(f"Cannot write {target}: {exc}") from exc
    logger.info("Wrote %s (%d bytes)", target, len(content), extra={"output": target})
    return target


def encode_for_http(image: np.ndarray, stem: str) -> EncodedImage:
    return EncodedImage(
        content=encode_image(image, "jpg"),
        media_type="image/jpeg",
        filename=f"{stem}.jpg",
    )
