from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

import cv2
import httpx
import numpy as np

from .errors import DecodeFailed, FetchFailed, InputNotFound

logger = logging.getLogger(__name__)

DEFAULT_STEM = "image"
DEFAULT_EXTENSION = "jpg"


@dataclass
class SourceImage:
    image: np.ndarray
    stem: str
    extension: str


def is_url(locator: str) -> bool:
    return urlparse(locator).scheme.lower() in {"http", "https"}


def split_name(locator: str) -> tuple[str, str]:
    if is_url(locator):
        name = PurePosixPath(unquote(urlparse(locator).path)).name
    else:
        name = Path(locator).name
    path = PurePosixPath(name)
    stem = path.stem if path.suffix else name
    extension = path.suffix.lstrip(".")
    return stem or DEFAULT_STEM, extension or DEFAULT_EXTENSION


def decode_image(data: bytes) -> np.ndarray:
    if not data:
        raise DecodeFailed("Empty image payload")
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise DecodeFailed("Unrecognised image format")
    if image.dtype != np.uint8:
        image = cv2.convertScaleAbs(image, alpha=255.0 / 65535.0)
    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image


def read_local(path: str | Path) -> bytes:
    file_path = Path(path)
    if not file_path.is_file():
        raise InputNotFound(f"Image not found: {file_path}")
    return file_path.read_bytes()


def fetch_url(url: str, client: httpx.Client) -> bytes:
    try:
        response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchFailed(f"Fetching {url} returned HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise FetchFailed(f"Fetching {url} failed: {exc}") from exc
    return response.content


def resolve(locator: str, client: httpx.Client | None = None, timeout: float = 30.0) -> SourceImage:
    stem, extension = split_name(locator)
    if is_url(locator):
        if client is None:
            with httpx.Client(timeout=timeout, follow_redirects=True) as own_client:
                data = fetch_url(locator, own_client)
        else:
            data = fetch_url(locator, client)
    else:
        data = read_local(locator)
    image = decode_image(data)
    logger.info(
        "Resolved %s -> %dx%d (%s.%s)",
        locator,
        image.shape[1],
        image.shape[0],
        stem,
        extension,
        extra={"locator": locator},
    )
    return SourceImage(image=image, stem=stem, extension=extension)
