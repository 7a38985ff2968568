"""
Processing Module - Image Processing for Document Alignment

This module provides the numpy/OpenCV building blocks of the pipeline:
- Preprocessing for the DocAligner models (resize, [0,1] normalization, CHW)
- Heatmap postprocessing (per-corner blob centroids)
- Point-model postprocessing (normalized corners to pixels)
- Perspective rectification of the detected quad
- QR code reading

All functions take RGB uint8 images [H, W, 3].
"""

from docscan.processing.transforms import (
    Point,
    Polygon,
    corner_distance,
    decode_base64,
    decode_float32_base64,
    encode_float32_base64,
    encode_png,
    encode_png_base64,
    load_image,
    load_image_from_base64,
    load_image_from_bytes,
)

from docscan.processing.preprocess import DocPreprocessor, PreprocessResult
from docscan.processing.heatmap import HeatmapPostprocessor, postprocess_heatmap
from docscan.processing.points import postprocess_points
from docscan.processing.perspective import (
    PerspectiveResult,
    PerspectiveTransformer,
    transform_image,
)
from docscan.processing.qr import QRResult, read_qr_code

__all__ = [
    # Low-level transforms
    "Point",
    "Polygon",
    "corner_distance",
    "decode_base64",
    "decode_float32_base64",
    "encode_float32_base64",
    "encode_png",
    "encode_png_base64",
    "load_image",
    "load_image_from_base64",
    "load_image_from_bytes",
    # Pipeline stages
    "DocPreprocessor",
    "PreprocessResult",
    "HeatmapPostprocessor",
    "postprocess_heatmap",
    "postprocess_points",
    "PerspectiveResult",
    "PerspectiveTransformer",
    "transform_image",
    "QRResult",
    "read_qr_code",
]
