"""Wire-level bridge operations.

Each function takes base64 text and plain values, runs the matching
processing stage, and returns a JSON-compatible payload. Invalid input
raises BridgeError whose message is what the application shell sees.

Payloads:
    preprocess          {"data": <base64 float32 CHW>, "originalSize": {"width", "height"}}
    postprocess_heatmap [[x, y], ...]
    transform_image     {"data": <base64 PNG>, "width", "height"}
    read_qr_code        {"found", "text", "corners"?}
"""

import logging
from typing import Any

import numpy as np

from docscan.processing import (
    DocPreprocessor,
    HeatmapPostprocessor,
    PerspectiveTransformer,
    decode_float32_base64,
    encode_float32_base64,
    encode_png_base64,
    load_image_from_base64,
    read_qr_code as read_qr,
)
from docscan.processing.perspective import parse_corners

logger = logging.getLogger(__name__)


class BridgeError(Exception):
    """Invalid input to a bridge operation.

    The message is delivered verbatim as the callback error.
    """


# Error messages seen by bridge callers
INVALID_IMAGE = "Invalid image"
INVALID_HEATMAP = "Invalid heatmap"
INVALID_SIZE = "Invalid size"
INVALID_INPUT = "Invalid input"
INVALID_CORNER_FORMAT = "Invalid corner format"
INVALID_CORNER_GEOMETRY = "Invalid corner geometry"

_preprocessor = DocPreprocessor()
_heatmap_postprocessor = HeatmapPostprocessor()
_transformer = PerspectiveTransformer()


def _decode_image(image_b64: str, message: str) -> np.ndarray:
    try:
        return load_image_from_base64(image_b64)
    except ValueError as e:
        logger.debug(f"Image decode failed: {e}")
        raise BridgeError(message) from e


def preprocess(image_b64: str) -> dict[str, Any]:
    """Decode a photo and prepare the model input tensor.

    Raises:
        BridgeError: "Invalid image" if the image cannot be decoded
    """
    image = _decode_image(image_b64, INVALID_IMAGE)
    result = _preprocessor(image)
    width, height = result.original_size

    return {
        "data": encode_float32_base64(result.tensor),
        "originalSize": {"width": width, "height": height},
    }


def postprocess_heatmap(heatmap_b64: str, width: int, height: int) -> list[list[float]]:
    """Turn a serialized heatmap into corner points at the original size.

    Raises:
        BridgeError: "Invalid heatmap" for undecodable or wrongly sized
            buffers, "Invalid size" for dimensions that are not
            positive integers
    """
    # bool is an int subclass
    for value in (width, height):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise BridgeError(INVALID_SIZE)

    width, height = int(width), int(height)
    if width < 1 or height < 1:
        raise BridgeError(INVALID_SIZE)

    try:
        heatmap = decode_float32_base64(heatmap_b64)
        polygon = _heatmap_postprocessor(heatmap, (width, height))
    except ValueError as e:
        logger.debug(f"Heatmap rejected: {e}")
        raise BridgeError(INVALID_HEATMAP) from e

    return [[x, y] for x, y in polygon]


def transform_image(image_b64: str, corners: Any) -> dict[str, Any]:
    """Rectify the quad bounded by `corners` and return it as PNG.

    Raises:
        BridgeError: "Invalid input" for an undecodable image or a corner
            list that is not 4 long, "Invalid corner format" for a corner
            that is not a pair of numbers, "Invalid corner geometry" when
            the quad spans less than one output pixel
    """
    image = _decode_image(image_b64, INVALID_INPUT)

    if not isinstance(corners, (list, tuple)) or len(corners) != 4:
        raise BridgeError(INVALID_INPUT)

    try:
        src = parse_corners(corners)
    except ValueError as e:
        raise BridgeError(INVALID_CORNER_FORMAT) from e

    try:
        result = _transformer(image, src)
    except ValueError as e:
        logger.debug(f"Transform rejected: {e}")
        raise BridgeError(INVALID_CORNER_GEOMETRY) from e

    return {
        "data": encode_png_base64(result.image),
        "width": result.width,
        "height": result.height,
    }


def read_qr_code(image_b64: str) -> dict[str, Any]:
    """Decode a QR code in a photo.

    Raises:
        BridgeError: "Invalid image" if the image cannot be decoded
    """
    image = _decode_image(image_b64, INVALID_IMAGE)
    return read_qr(image).to_dict()
