"""Point-regression postprocessing for the DocAligner point model.

The point model regresses 4 normalized (x, y) corners plus an
objectness score. It is the fallback when the heatmap model does not
produce a full quad.
"""

import logging

import numpy as np

from docscan.config import get_section
from docscan.processing.transforms import Polygon

logger = logging.getLogger(__name__)

_points_config = get_section("points")
NUM_POINTS: int = _points_config["num_points"]
HAS_OBJ_THRESHOLD: float = _points_config["has_obj_threshold"]


def postprocess_points(
    points: np.ndarray,
    has_obj: np.ndarray,
    image_size: tuple[int, int],
    threshold: float = HAS_OBJ_THRESHOLD,
) -> Polygon:
    """Scale normalized corner predictions to image coordinates.

    Args:
        points: Model output holding NUM_POINTS * 2 values in [0, 1],
            ordered x0, y0, x1, y1, ...
        has_obj: Objectness score (first element is used)
        image_size: (height, width) of the original image
        threshold: Minimum objectness; scores at or below it yield no polygon

    Returns:
        Polygon of NUM_POINTS corners, or an empty list when the model
        reports no document or the output has an unexpected size

    Example:
        >>> postprocess_points(
        ...     np.array([0.1, 0.2, 0.9, 0.2, 0.9, 0.8, 0.1, 0.8]),
        ...     np.array([0.95]),
        ...     (100, 200),
        ... )[0]
        (20.0, 20.0)
    """
    score = float(np.asarray(has_obj).reshape(-1)[0])
    if score <= threshold:
        logger.debug(f"Point model objectness {score:.3f} <= {threshold}")
        return []

    values = np.asarray(points, dtype=np.float64).reshape(-1)
    if values.size != NUM_POINTS * 2:
        logger.warning(
            f"Expected {NUM_POINTS * 2} coordinate values "
            f"({NUM_POINTS} points), got {values.size}"
        )
        return []

    height, width = image_size
    coords = values.reshape(NUM_POINTS, 2) * np.array([width, height], dtype=np.float64)

    return [(float(x), float(y)) for x, y in coords]
