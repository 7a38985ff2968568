"""DocAligner Preprocessing Pipeline.

This module provides the DocPreprocessor class for preparing photos
for the DocAligner heatmap and point models.

Pipeline:
    1. Resize to 256x256 (bilinear, aspect ratio not preserved)
    2. Normalize to [0, 1] by dividing by 255.0
    3. Transpose HWC → CHW (channels first for ONNX)
    4. Add batch dimension → [1, 3, 256, 256]

Both models predict corners in normalized space, so the original
image size is carried alongside the tensor for mapping them back.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from docscan.config import get_section

# =============================================================================
# Constants (Loaded from pipeline.yaml)
# =============================================================================

_preprocess_config = get_section("preprocessing")
DOC_INPUT_SIZE: int = _preprocess_config["input_size"]
"""Square model input dimension from pipeline.yaml."""

DOC_NORMALIZATION_SCALE: float = _preprocess_config["normalization_scale"]
"""Pixel divisor mapping uint8 to [0, 1] from pipeline.yaml."""


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class PreprocessResult:
    """Result container for DocAligner preprocessing.

    Attributes:
        tensor: Preprocessed image tensor [1, 3, 256, 256], float32, range [0, 1]
        original_size: (width, height) of the input image
    """

    tensor: np.ndarray
    original_size: tuple[int, int]

    @property
    def width(self) -> int:
        return self.original_size[0]

    @property
    def height(self) -> int:
        return self.original_size[1]


# =============================================================================
# Preprocessor Class
# =============================================================================


class DocPreprocessor:
    """Preprocessor for the DocAligner heatmap and point models.

    Attributes:
        input_size: Target input dimension (default: 256)
        normalization_scale: Divisor for pixel normalization (default: 255.0)

    Example:
        >>> preprocessor = DocPreprocessor()
        >>> image = np.random.randint(0, 256, (1080, 1920, 3), dtype=np.uint8)
        >>> result = preprocessor(image)
        >>> result.tensor.shape
        (1, 3, 256, 256)
        >>> result.original_size
        (1920, 1080)
    """

    def __init__(
        self,
        input_size: int = DOC_INPUT_SIZE,
        normalization_scale: float = DOC_NORMALIZATION_SCALE,
    ) -> None:
        self.input_size = input_size
        self.normalization_scale = normalization_scale

    def __call__(self, image: np.ndarray) -> PreprocessResult:
        return self.preprocess(image)

    def preprocess(self, image: np.ndarray) -> PreprocessResult:
        """Preprocess image for DocAligner inference.

        Args:
            image: RGB uint8 array with shape [H, W, 3]

        Returns:
            PreprocessResult containing:
                - tensor: [1, 3, 256, 256] float32 in [0, 1]
                - original_size: Input image (width, height)

        Raises:
            ValueError: If image has invalid shape or dtype
        """
        self._validate_input(image)

        original_size = (image.shape[1], image.shape[0])

        # Step 1: Resize (stretch) to model input
        resized = cv2.resize(
            image,
            (self.input_size, self.input_size),
            interpolation=cv2.INTER_LINEAR,
        )

        # Step 2: Normalize to [0, 1]
        normalized = resized.astype(np.float32) / self.normalization_scale

        # Step 3: Transpose HWC → CHW
        transposed = normalized.transpose(2, 0, 1)

        # Step 4: Add batch dimension
        batched = np.expand_dims(transposed, axis=0)

        # Ensure contiguous memory layout for ONNX Runtime and wire encoding
        tensor = np.ascontiguousarray(batched)

        return PreprocessResult(tensor=tensor, original_size=original_size)

    def _validate_input(self, image: np.ndarray) -> None:
        """Validate input image.

        Raises:
            ValueError: If image has invalid shape or dtype
        """
        if not isinstance(image, np.ndarray):
            raise ValueError(f"Expected numpy array, got {type(image)}")

        if image.ndim != 3:
            raise ValueError(f"Expected 3D array [H, W, C], got {image.ndim}D")

        if image.shape[2] != 3:
            raise ValueError(f"Expected 3 channels, got {image.shape[2]}")

        if image.dtype != np.uint8:
            raise ValueError(f"Expected uint8 dtype, got {image.dtype}")

        if image.shape[0] < 1 or image.shape[1] < 1:
            raise ValueError(f"Invalid image dimensions: {image.shape[:2]}")

    @staticmethod
    def get_input_shape() -> tuple[int, int, int, int]:
        """Get expected ONNX model input shape.

        Returns:
            Tuple of (batch, channels, height, width)
        """
        return (1, 3, DOC_INPUT_SIZE, DOC_INPUT_SIZE)

    @staticmethod
    def get_input_dtype() -> np.dtype:
        return np.dtype(np.float32)
