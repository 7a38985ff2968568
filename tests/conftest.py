"""
Pytest Fixtures - Shared Test Fixtures for docscan

Fixtures:
    sample_image: Random RGB image (480x640)
    document_image: Synthetic photo with a filled quad at document_corners
    heatmap_grid_corners: Corner positions in the 128x128 heatmap grid
    corner_heatmap: 4x128x128 heatmap with one square blob per corner
    models_dir: Directory with tiny heatmap and point ONNX models
"""

from pathlib import Path

import cv2
import numpy as np
import pytest

from docscan.processing import encode_png_base64
from tests.utils import build_heatmap_model, build_point_model, make_heatmap


# =============================================================================
# Image Fixtures
# =============================================================================

@pytest.fixture
def sample_image() -> np.ndarray:
    """
    Random RGB image for shape and dtype checks.

    Returns:
        RGB uint8 array with shape [480, 640, 3]
    """
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, (480, 640, 3), dtype=np.uint8)


@pytest.fixture
def document_corners() -> list[tuple[float, float]]:
    """Corners (TL, TR, BR, BL) of the quad in document_image."""
    return [(100.0, 80.0), (540.0, 100.0), (560.0, 400.0), (80.0, 380.0)]


@pytest.fixture
def document_color() -> tuple[int, int, int]:
    """RGB fill color of the document quad."""
    return (200, 60, 30)


@pytest.fixture
def document_image(document_corners, document_color) -> np.ndarray:
    """
    Synthetic photo: dark background with a filled quad.

    Returns:
        RGB uint8 array with shape [480, 640, 3]
    """
    image = np.full((480, 640, 3), 20, dtype=np.uint8)
    polygon = np.array(document_corners, dtype=np.int32)
    cv2.fillPoly(image, [polygon], document_color)
    return image


@pytest.fixture
def document_b64(document_image: np.ndarray) -> str:
    """document_image as base64 PNG text."""
    return encode_png_base64(document_image)


# =============================================================================
# Heatmap Fixtures
# =============================================================================

@pytest.fixture
def heatmap_grid_corners() -> list[tuple[int, int]]:
    """Blob centers (gx, gy) in the 128x128 grid, ordered TL, TR, BR, BL."""
    return [(20, 20), (108, 24), (104, 100), (24, 104)]


@pytest.fixture
def corner_heatmap(heatmap_grid_corners) -> np.ndarray:
    """Heatmap [4, 128, 128] with one blob per corner."""
    return make_heatmap(heatmap_grid_corners)


# =============================================================================
# Model Fixtures
# =============================================================================

@pytest.fixture
def point_model_corners() -> list[float]:
    """Normalized corners emitted by the test point model (x0, y0, ... x3, y3)."""
    return [0.1, 0.1, 0.9, 0.15, 0.85, 0.9, 0.15, 0.85]


@pytest.fixture
def models_dir(tmp_path: Path, corner_heatmap: np.ndarray, point_model_corners) -> Path:
    """Models directory where the heatmap model finds all four corners."""
    directory = tmp_path / "models"
    directory.mkdir()
    build_heatmap_model(directory / "model_heat.onnx", corner_heatmap)
    build_point_model(directory / "model_point.onnx", point_model_corners, has_obj=0.9)
    return directory
