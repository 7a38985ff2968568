"""Perspective rectification of a detected document quad.

The output keeps a fixed aspect ratio (16:9 by default, matching slides
and screens photographed at talks). Its height is the shorter of the
quad's two vertical edges so the warp never upsamples along that axis.
"""

from dataclasses import dataclass
from typing import Sequence

import cv2
import numpy as np

from docscan.config import get_aspect_ratio
from docscan.processing.transforms import corner_distance

DEFAULT_ASPECT_RATIO: float = get_aspect_ratio()
"""Output width / height from pipeline.yaml."""


@dataclass
class PerspectiveResult:
    """Result container for a perspective warp.

    Attributes:
        image: Rectified RGB uint8 image [height, width, 3]
        width: Output width in pixels
        height: Output height in pixels
        matrix: 3x3 homography mapping source corners to the output frame
    """

    image: np.ndarray
    width: int
    height: int
    matrix: np.ndarray


def parse_corners(corners: Sequence[Sequence[float]]) -> np.ndarray:
    """Validate and convert corners into a float32 [4, 2] array.

    Args:
        corners: Four (x, y) pairs ordered TL, TR, BR, BL

    Raises:
        ValueError: If there are not exactly 4 corners or a corner is
            not a pair of finite numbers
    """
    if isinstance(corners, np.ndarray):
        corners = corners.tolist()

    if not isinstance(corners, (list, tuple)) or len(corners) != 4:
        raise ValueError("Expected exactly 4 corners")

    parsed = []
    for corner in corners:
        if not isinstance(corner, (list, tuple, np.ndarray)) or len(corner) != 2:
            raise ValueError(f"Invalid corner format: {corner!r}")
        try:
            parsed.append((float(corner[0]), float(corner[1])))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid corner format: {corner!r}") from e

    src = np.array(parsed, dtype=np.float32)

    # Also catches values that overflow float32
    if not np.isfinite(src).all():
        raise ValueError(f"Invalid corner format: non-finite coordinate in {parsed!r}")

    return src


def target_size(corners: np.ndarray, aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> tuple[float, float]:
    """Compute the (width, height) of the rectified output.

    Example:
        >>> quad = np.array([[0, 0], [200, 0], [200, 120], [0, 100]], dtype=np.float32)
        >>> width, height = target_size(quad)
        >>> height  # shorter vertical edge
        100.0
    """
    height_left = corner_distance(corners[0], corners[3])
    height_right = corner_distance(corners[1], corners[2])
    height = min(height_left, height_right)
    return height * aspect_ratio, height


class PerspectiveTransformer:
    """Warp a document quad onto an axis-aligned rectangle.

    Attributes:
        aspect_ratio: Output width / height (default: 16 / 9)

    Example:
        >>> transformer = PerspectiveTransformer()
        >>> image = np.zeros((300, 400, 3), dtype=np.uint8)
        >>> result = transformer(image, [[10, 10], [370, 20], [380, 280], [20, 270]])
        >>> (result.width, result.height)
        (462, 260)
    """

    def __init__(self, aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> None:
        if aspect_ratio <= 0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        self.aspect_ratio = aspect_ratio

    def __call__(self, image: np.ndarray, corners: Sequence[Sequence[float]]) -> PerspectiveResult:
        return self.transform(image, corners)

    def transform(self, image: np.ndarray, corners: Sequence[Sequence[float]]) -> PerspectiveResult:
        """Rectify the region bounded by `corners`.

        Args:
            image: RGB uint8 array with shape [H, W, 3]
            corners: Four (x, y) pairs ordered TL, TR, BR, BL

        Returns:
            PerspectiveResult with the warped image and its size

        Raises:
            ValueError: If corners are malformed or span less than one
                output pixel
        """
        src = parse_corners(corners)
        width, height = target_size(src, self.aspect_ratio)

        out_w, out_h = int(width), int(height)
        if out_w < 1 or out_h < 1:
            raise ValueError(
                f"Corners produce an empty output ({width:.2f}x{height:.2f})"
            )

        dst = np.array(
            [
                [0, 0],
                [width, 0],
                [width, height],
                [0, height],
            ],
            dtype=np.float32,
        )

        matrix = cv2.getPerspectiveTransform(src, dst)
        warped = cv2.warpPerspective(
            image,
            matrix,
            (out_w, out_h),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
        )

        return PerspectiveResult(image=warped, width=out_w, height=out_h, matrix=matrix)


def transform_image(
    image: np.ndarray,
    corners: Sequence[Sequence[float]],
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> PerspectiveResult:
    """Functional shortcut for PerspectiveTransformer."""
    return PerspectiveTransformer(aspect_ratio)(image, corners)
