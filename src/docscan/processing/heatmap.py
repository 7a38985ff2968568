"""Heatmap postprocessing for the DocAligner heatmap model.

The heatmap model emits one 128x128 probability map per document corner
(top-left, top-right, bottom-right, bottom-left). Each map is upscaled
to the original image size, thresholded, and the centroid of its largest
blob becomes the corner.
"""

import logging

import cv2
import numpy as np

from docscan.config import get_section
from docscan.processing.transforms import Polygon

logger = logging.getLogger(__name__)

# =============================================================================
# Constants (Loaded from pipeline.yaml)
# =============================================================================

_heatmap_config = get_section("heatmap")
HEATMAP_HEIGHT: int = _heatmap_config["height"]
HEATMAP_WIDTH: int = _heatmap_config["width"]
HEATMAP_CHANNELS: int = _heatmap_config["channels"]
HEATMAP_THRESHOLD: float = _heatmap_config["threshold"]


class HeatmapPostprocessor:
    """Convert corner heatmaps into a polygon in original image coordinates.

    Attributes:
        threshold: Probability above which a pixel belongs to a corner blob
        size: (height, width) of each heatmap channel
        channels: Number of heatmap channels (one per corner)

    Example:
        >>> postprocessor = HeatmapPostprocessor()
        >>> heatmap = np.zeros((4, 128, 128), dtype=np.float32)
        >>> heatmap[0, 10:20, 10:20] = 1.0
        >>> len(postprocessor(heatmap, (512, 512)))  # only channel 0 has a blob
        1
    """

    def __init__(
        self,
        threshold: float = HEATMAP_THRESHOLD,
        size: tuple[int, int] = (HEATMAP_HEIGHT, HEATMAP_WIDTH),
        channels: int = HEATMAP_CHANNELS,
    ) -> None:
        self.threshold = threshold
        self.size = size
        self.channels = channels

    def __call__(self, heatmap: np.ndarray, original_size: tuple[int, int]) -> Polygon:
        return self.postprocess(heatmap, original_size)

    def postprocess(self, heatmap: np.ndarray, original_size: tuple[int, int]) -> Polygon:
        """Extract one corner per heatmap channel.

        Args:
            heatmap: Float array [C, H, W], [1, C, H, W] or a flat buffer
                of C*H*W values
            original_size: (width, height) of the original image

        Returns:
            Polygon with up to `channels` points, in channel order.
            Channels without a blob are skipped.

        Raises:
            ValueError: If the heatmap has the wrong number of values or
                original_size is not positive
        """
        width, height = (int(v) for v in original_size)
        if width < 1 or height < 1:
            raise ValueError(f"Invalid original size: {original_size}")

        maps = self._reshape(heatmap)

        polygon: Polygon = []
        for channel, channel_map in enumerate(maps):
            corner = self._channel_centroid(channel_map, width, height)
            if corner is None:
                logger.debug(f"Heatmap channel {channel}: no corner found")
                continue
            polygon.append(corner)

        return polygon

    def _reshape(self, heatmap: np.ndarray) -> np.ndarray:
        heatmap = np.asarray(heatmap, dtype=np.float32)
        map_h, map_w = self.size
        expected = self.channels * map_h * map_w

        if heatmap.size != expected:
            raise ValueError(
                f"Expected {expected} heatmap values "
                f"({self.channels}x{map_h}x{map_w}), got {heatmap.size}"
            )

        return heatmap.reshape(self.channels, map_h, map_w)

    def _channel_centroid(
        self, channel_map: np.ndarray, width: int, height: int
    ) -> tuple[float, float] | None:
        resized = cv2.resize(
            channel_map,
            (width, height),
            interpolation=cv2.INTER_LINEAR,
        )

        _, thresh = cv2.threshold(resized, self.threshold, 1.0, cv2.THRESH_BINARY)
        binary = (thresh * 255).astype(np.uint8)

        contours, _ = cv2.findContours(
            binary,
            cv2.RETR_EXTERNAL,
            cv2.CHAIN_APPROX_SIMPLE,
        )

        # Zero-area contours (single pixels, lines) never qualify
        best = None
        best_area = 0.0
        for contour in contours:
            area = cv2.contourArea(contour)
            if area > best_area:
                best_area = area
                best = contour

        if best is None:
            return None

        moments = cv2.moments(best)
        if moments["m00"] == 0:
            return None

        return (
            float(moments["m10"] / moments["m00"]),
            float(moments["m01"] / moments["m00"]),
        )


def postprocess_heatmap(
    heatmap: np.ndarray,
    original_size: tuple[int, int],
    threshold: float = HEATMAP_THRESHOLD,
) -> Polygon:
    """Functional shortcut for HeatmapPostprocessor with default sizes."""
    return HeatmapPostprocessor(threshold=threshold)(heatmap, original_size)
