"""
Model Module - ONNX Model Registry and Storage

This module provides:
- registry: Load and cache ONNX Runtime inference sessions
- storage: Fetch model files from (and push them to) MinIO

The service, the CLI and the aligner share one registry so every
entry point uses identical session configuration.
"""

from docscan.model.registry import (
    DEFAULT_INTER_OP_THREADS,
    DEFAULT_INTRA_OP_THREADS,
    ModelInfo,
    ModelRegistry,
    SessionConfig,
    get_default_registry,
    model_filenames,
    reset_default_registry,
)

from docscan.model.storage import (
    create_client,
    ensure_models,
    object_name,
    upload_models,
)

__all__ = [
    # Registry
    "DEFAULT_INTER_OP_THREADS",
    "DEFAULT_INTRA_OP_THREADS",
    "ModelInfo",
    "ModelRegistry",
    "SessionConfig",
    "get_default_registry",
    "model_filenames",
    "reset_default_registry",
    # Storage
    "create_client",
    "ensure_models",
    "object_name",
    "upload_models",
]
