"""
Low-Level Image Transforms and Codecs

This module contains the atomic helpers shared by the preprocessors,
the bridge operations and the aligner.

Functions:
    decode_base64: Decode base64 text, tolerating data URIs and stray characters
    load_image: Load image file as RGB numpy array
    load_image_from_bytes: Decode image bytes as RGB numpy array
    load_image_from_base64: Decode base64 image text as RGB numpy array
    encode_png: Encode RGB image as PNG bytes
    encode_png_base64: Encode RGB image as base64 PNG text
    encode_float32_base64: Serialize a float32 buffer as base64 text
    decode_float32_base64: Parse base64 text into a flat float32 array
    corner_distance: Euclidean distance between two points

Images are RGB uint8 [H, W, 3] everywhere in this package. OpenCV's
BGR order only appears inside the decode/encode helpers.
"""

import base64
import binascii
import math
import re
from typing import List, Sequence, Tuple

import cv2
import numpy as np


# =============================================================================
# Types
# =============================================================================

Point = Tuple[float, float]
"""(x, y) in original image pixel coordinates."""

Polygon = List[Point]
"""List of Points; a document quad is [top-left, top-right, bottom-right, bottom-left]."""

# Float buffers on the wire are little-endian float32
WIRE_FLOAT_DTYPE = np.dtype("<f4")

_DATA_URI_PREFIX = re.compile(r"^\s*data:[^,]*;base64,", re.IGNORECASE)


# =============================================================================
# Base64
# =============================================================================

def decode_base64(text: str) -> bytes:
    """
    Decode base64 text into raw bytes.

    Characters outside the base64 alphabet (line breaks, spaces) are
    ignored, and a leading ``data:<mime>;base64,`` prefix is stripped.

    Args:
        text: Base64 encoded text

    Returns:
        Decoded bytes

    Raises:
        ValueError: If text is not a string, has malformed padding,
            or decodes to nothing
    """
    if not isinstance(text, str):
        raise ValueError(f"Expected base64 text, got {type(text)}")

    text = _DATA_URI_PREFIX.sub("", text, count=1)

    try:
        data = base64.b64decode(text)
    except binascii.Error as e:
        raise ValueError(f"Malformed base64 input: {e}") from e

    if not data:
        raise ValueError("Malformed base64 input: empty payload")

    return data


# =============================================================================
# Image Loading
# =============================================================================

def load_image(image_path: str) -> np.ndarray:
    """
    Load an image file as an RGB numpy array.

    EXIF orientation is applied by OpenCV, so photos taken in portrait
    mode come back upright.

    Args:
        image_path: Path to image file (JPEG, PNG, etc.)

    Returns:
        RGB uint8 array with shape [H, W, 3]

    Raises:
        ValueError: If image cannot be loaded (file not found or corrupted)
    """
    bgr = cv2.imread(str(image_path), cv2.IMREAD_COLOR)

    if bgr is None:
        raise ValueError(f"Failed to load image: {image_path}")

    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def load_image_from_bytes(image_bytes: bytes) -> np.ndarray:
    """
    Decode image bytes as an RGB numpy array.

    Grayscale and alpha images are converted to 3-channel RGB.

    Args:
        image_bytes: Raw image bytes (JPEG, PNG, etc.)

    Returns:
        RGB uint8 array with shape [H, W, 3]

    Raises:
        ValueError: If image cannot be decoded

    Example:
        >>> with open("page.jpg", "rb") as f:
        ...     image = load_image_from_bytes(f.read())
        >>> image.shape
        (3024, 4032, 3)
    """
    if not image_bytes:
        raise ValueError("Failed to decode image from bytes: empty input")

    nparr = np.frombuffer(image_bytes, np.uint8)
    bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if bgr is None:
        raise ValueError("Failed to decode image from bytes")

    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def load_image_from_base64(text: str) -> np.ndarray:
    """
    Decode base64 image text as an RGB numpy array.

    Raises:
        ValueError: If the text or the image cannot be decoded
    """
    return load_image_from_bytes(decode_base64(text))


# =============================================================================
# Encoding
# =============================================================================

def encode_png(image: np.ndarray) -> bytes:
    """
    Encode an RGB image as PNG bytes.

    Args:
        image: RGB uint8 array with shape [H, W, 3]

    Returns:
        PNG file contents

    Raises:
        ValueError: If OpenCV fails to encode the image
    """
    bgr = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    ok, buf = cv2.imencode(".png", bgr)

    if not ok:
        raise ValueError(f"Failed to encode PNG for image of shape {image.shape}")

    return buf.tobytes()


def encode_png_base64(image: np.ndarray) -> str:
    """Encode an RGB image as base64 PNG text."""
    return base64.b64encode(encode_png(image)).decode("ascii")


def encode_float32_base64(array: np.ndarray) -> str:
    """
    Serialize an array as base64 text of little-endian float32 values.

    The array is flattened in C order, so a CHW tensor is written
    channel by channel.

    Args:
        array: Any numeric array

    Returns:
        Base64 text of the raw float32 buffer

    Example:
        >>> encode_float32_base64(np.array([1.0], dtype=np.float32))
        'AACAPw=='
    """
    buffer = np.ascontiguousarray(array, dtype=WIRE_FLOAT_DTYPE)
    return base64.b64encode(buffer.tobytes()).decode("ascii")


def decode_float32_base64(text: str) -> np.ndarray:
    """
    Parse base64 text into a flat float32 array.

    Args:
        text: Base64 text produced by encode_float32_base64

    Returns:
        1D float32 array (native byte order)

    Raises:
        ValueError: If the text is malformed or its byte length is not
            a multiple of 4
    """
    data = decode_base64(text)

    if len(data) % WIRE_FLOAT_DTYPE.itemsize != 0:
        raise ValueError(
            f"Float buffer length {len(data)} is not a multiple of "
            f"{WIRE_FLOAT_DTYPE.itemsize}"
        )

    return np.frombuffer(data, dtype=WIRE_FLOAT_DTYPE).astype(np.float32)


# =============================================================================
# Geometry
# =============================================================================

def corner_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance between two (x, y) points."""
    return math.hypot(float(a[0]) - float(b[0]), float(a[1]) - float(b[1]))
