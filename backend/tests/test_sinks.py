from __future__ import annotations

import re
import uuid

import cv2
import numpy as np
import pytest

from strangeway.errors import EncodeFailed
from strangeway.sinks import encode_for_http, encode_image, output_path, save_image


def test_output_path_format(tmp_path) -> None:
    uid = uuid.UUID("12345678-1234-5678-1234-567812345678")
    path = output_path("portrait", "png", tmp_path, uid=uid)
    assert path == tmp_path / "portrait_12345678-1234-5678-1234-567812345678.png"


def test_output_path_is_unique() -> None:
    assert output_path("a", "jpg") != output_path("a", "jpg")


def test_save_image_writes_decodable_file(tmp_path) -> None:
    image = np.full((33, 47, 3), 128, dtype=np.uint8)

    written = save_image(image, "group", "png", tmp_path)

    assert written.parent == tmp_path
    assert re.fullmatch(r"group_[0-9a-f\-]{36}\.png", written.name)
    decoded = cv2.imread(str(written), cv2.IMREAD_UNCHANGED)
    np.testing.assert_array_equal(decoded, image)


def test_save_image_unknown_format_writes_nothing(tmp_path) -> None:
    with pytest.raises(EncodeFailed):
        save_image(np.zeros((4, 4, 3), np.uint8), "weird", "notaformat", tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_jpeg_round_trip_keeps_dimensions() -> None:
    image = np.random.default_rng(0).integers(0, 256, size=(61, 83, 3), dtype=np.uint8)
    decoded = cv2.imdecode(np.frombuffer(encode_image(image, "JPG"), np.uint8), cv2.IMREAD_COLOR)
    assert decoded.shape == image.shape


def test_jpeg_drops_alpha() -> None:
    image = np.zeros((10, 10, 4), dtype=np.uint8)
    decoded = cv2.imdecode(np.frombuffer(encode_image(image, "jpeg"), np.uint8), cv2.IMREAD_UNCHANGED)
    assert decoded.shape == (10, 10, 3)


def test_encode_for_http() -> None:
    encoded = encode_for_http(np.zeros((12, 9, 4), dtype=np.uint8), "holiday")

    assert encoded.media_type == "image/jpeg"
    assert encoded.filename == "holiday.jpg"
    assert encoded.content_disposition == 'attachment; filename="holiday.jpg"'
    assert encoded.content[:2] == b"\xff\xd8"
