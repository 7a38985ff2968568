"""
docscan - Document Detection and Rectification

- processing: numpy/OpenCV pipeline stages (preprocess, heatmap and point
  postprocessing, perspective warp, QR reading)
- model: ONNX Runtime session registry and MinIO model storage
- aligner: heatmap → point-model fallback → warp pipeline
- bridge: callback interface for application shells, plus async wrappers
- service: FastAPI HTTP service
"""

from docscan.aligner import AlignResult, DetectionResult, DetectionSource, DocAligner
from docscan.processing import (
    DocPreprocessor,
    HeatmapPostprocessor,
    PerspectiveTransformer,
    postprocess_points,
    read_qr_code,
)

__all__ = [
    "AlignResult",
    "DetectionResult",
    "DetectionSource",
    "DocAligner",
    "DocPreprocessor",
    "HeatmapPostprocessor",
    "PerspectiveTransformer",
    "postprocess_points",
    "read_qr_code",
]

__version__ = "0.1.0"
