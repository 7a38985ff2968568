"""Document alignment pipeline.

This module orchestrates corner detection and rectification:
1. Preprocess the photo once (256x256, [0, 1], CHW)
2. Heatmap model → per-corner blob centroids
3. If that is not a full quad, point model → regressed corners
4. Perspective warp of the detected quad

Both models run in-process through the shared ModelRegistry.
"""

import logging
import time
from dataclasses import dataclass
from enum import IntEnum

import numpy as np

from docscan.config import get_model_config
from docscan.model.registry import ModelRegistry
from docscan.processing import (
    DocPreprocessor,
    HeatmapPostprocessor,
    PerspectiveResult,
    PerspectiveTransformer,
    Polygon,
    PreprocessResult,
    postprocess_points,
)
from docscan.processing.points import NUM_POINTS

logger = logging.getLogger(__name__)


class DetectionSource(IntEnum):
    """Which model produced the detected corners."""

    HEATMAP = 0
    POINT = 1
    NONE = 2


@dataclass
class DetectionResult:
    """Corner detection outcome.

    Attributes:
        polygon: Four corners (TL, TR, BR, BL) or None when nothing was found
        source: Model that produced the polygon
    """

    polygon: Polygon | None
    source: DetectionSource

    @property
    def found(self) -> bool:
        return self.polygon is not None


@dataclass
class AlignResult:
    """Detection plus optional rectified image."""

    detection: DetectionResult
    transformed: PerspectiveResult | None = None


class DocAligner:
    """Detect a document quad and rectify it.

    Sessions are resolved through the registry on first use, so a
    DocAligner can be created before the model files exist.

    Attributes:
        registry: ModelRegistry for ONNX session management
        preprocessor: Model input preprocessing
        heatmap_postprocessor: Heatmap → corners
        transformer: Perspective rectification
    """

    HEATMAP_MODEL = "heatmap"
    POINT_MODEL = "point"

    def __init__(
        self,
        registry: ModelRegistry,
        preprocessor: DocPreprocessor | None = None,
        heatmap_postprocessor: HeatmapPostprocessor | None = None,
        transformer: PerspectiveTransformer | None = None,
    ) -> None:
        self.registry = registry
        self.preprocessor = preprocessor or DocPreprocessor()
        self.heatmap_postprocessor = heatmap_postprocessor or HeatmapPostprocessor()
        self.transformer = transformer or PerspectiveTransformer()

        self._heatmap_config = get_model_config(self.HEATMAP_MODEL)
        self._point_config = get_model_config(self.POINT_MODEL)

    # ------------------------------------------------------------------
    # Model calls
    # ------------------------------------------------------------------

    def _run(self, model_name: str, model_config: dict, tensor: np.ndarray) -> list[np.ndarray]:
        session = self.registry.get_session(model_name)
        return session.run(
            model_config["output_names"],
            {model_config["input_name"]: tensor},
        )

    def run_heatmap_model(self, prepared: PreprocessResult) -> Polygon:
        """Run the heatmap model and extract its corners."""
        (heatmap,) = self._run(self.HEATMAP_MODEL, self._heatmap_config, prepared.tensor)
        return self.heatmap_postprocessor(heatmap, prepared.original_size)

    def run_point_model(self, prepared: PreprocessResult) -> Polygon:
        """Run the point model and scale its corners to the image."""
        points, has_obj = self._run(self.POINT_MODEL, self._point_config, prepared.tensor)
        return postprocess_points(
            points,
            has_obj,
            (prepared.height, prepared.width),
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def detect(self, image: np.ndarray) -> DetectionResult:
        """Find the document corners in an image.

        Args:
            image: RGB uint8 array with shape [H, W, 3]

        Returns:
            DetectionResult; source is HEATMAP, POINT (fallback), or NONE

        Raises:
            ValueError: If image has invalid shape or dtype
            FileNotFoundError: If a required model file is missing
        """
        t0 = time.perf_counter()
        prepared = self.preprocessor(image)

        polygon = self.run_heatmap_model(prepared)
        source = DetectionSource.HEATMAP

        if len(polygon) != NUM_POINTS:
            logger.info(
                f"Heatmap model found {len(polygon)} corners, "
                "falling back to point model"
            )
            polygon = self.run_point_model(prepared)
            source = DetectionSource.POINT

            if len(polygon) != NUM_POINTS:
                polygon = None
                source = DetectionSource.NONE

        elapsed_ms = (time.perf_counter() - t0) * 1000
        logger.info(
            f"Detection took {elapsed_ms:.1f}ms",
            extra={"latency_ms": elapsed_ms, "source": source.name},
        )

        return DetectionResult(polygon=polygon, source=source)

    def transform_with_corners(self, image: np.ndarray, corners: Polygon) -> PerspectiveResult:
        """Rectify an image with caller-provided corners.

        Raises:
            ValueError: If corners are missing or not exactly 4 points
        """
        if not corners or len(corners) != NUM_POINTS:
            raise ValueError("Invalid corner points: must provide exactly 4 points")

        t0 = time.perf_counter()
        result = self.transformer(image, corners)
        elapsed_ms = (time.perf_counter() - t0) * 1000
        logger.info(
            f"Transform took {elapsed_ms:.1f}ms ({result.width}x{result.height})",
            extra={"latency_ms": elapsed_ms},
        )
        return result

    def align(self, image: np.ndarray, transform: bool = True) -> AlignResult:
        """Detect corners and, when a quad is found, rectify the document.

        Args:
            image: RGB uint8 array with shape [H, W, 3]
            transform: Set False to skip the warp and only detect

        Returns:
            AlignResult with detection and, if applicable, the warped image.
            A quad too small to warp is reported with transformed=None.
        """
        detection = self.detect(image)

        if not transform or not detection.found:
            return AlignResult(detection=detection)

        try:
            transformed = self.transform_with_corners(image, detection.polygon)
        except ValueError as e:
            logger.warning(
                f"Skipping warp of {detection.source.name} corners: {e}",
                extra={"source": detection.source.name, "corners": detection.polygon},
            )
            return AlignResult(detection=detection)

        return AlignResult(detection=detection, transformed=transformed)
