"""ONNX Model Registry.

This module provides a registry for loading and caching ONNX Runtime
inference sessions for the DocAligner heatmap and point models.

Features:
- Lazy loading: Models loaded on first access
- Session caching: Avoid redundant model loading
- Thread configuration: intra_op/inter_op thread settings from pipeline.yaml
- Metadata: Input/output names and shapes for each loaded model
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock

import numpy as np

from docscan.config import get_model_config, get_model_names, get_section

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

_onnx_config = get_section("onnx_runtime")

DEFAULT_INTRA_OP_THREADS: int = _onnx_config["intra_op_num_threads"]
"""ONNX Runtime intra-op parallelism (within single operator)."""

DEFAULT_INTER_OP_THREADS: int = _onnx_config["inter_op_num_threads"]
"""ONNX Runtime inter-op parallelism (across operators)."""

# Map ONNX dtype strings to numpy dtypes
_ONNX_TO_NUMPY = {
    "tensor(float)": np.float32,
    "tensor(float16)": np.float16,
    "tensor(int64)": np.int64,
    "tensor(int32)": np.int32,
}


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ModelInfo:
    """Information about a loaded model.

    Attributes:
        name: Model identifier
        path: Path to ONNX file
        input_name: Name of input tensor
        input_shape: Expected input shape (symbolic dims kept as strings)
        input_dtype: Expected input dtype
        output_names: Names of all output tensors, in graph order
        output_shapes: Shapes of all output tensors, in graph order
    """

    name: str
    path: Path
    input_name: str
    input_shape: tuple
    input_dtype: np.dtype
    output_names: list[str]
    output_shapes: list[tuple]


@dataclass
class SessionConfig:
    """Configuration for ONNX Runtime inference session.

    Attributes:
        intra_op_threads: Number of threads for intra-op parallelism
        inter_op_threads: Number of threads for inter-op parallelism
        providers: Execution providers (default: CPUExecutionProvider)
    """

    intra_op_threads: int = DEFAULT_INTRA_OP_THREADS
    inter_op_threads: int = DEFAULT_INTER_OP_THREADS
    providers: list[str] = field(default_factory=lambda: ["CPUExecutionProvider"])


def model_filenames() -> dict[str, str]:
    """Map of model name to ONNX filename, from pipeline.yaml.

    Example:
        >>> model_filenames()
        {'heatmap': 'model_heat.onnx', 'point': 'model_point.onnx'}
    """
    return {name: get_model_config(name)["file"] for name in get_model_names()}


# =============================================================================
# Model Registry
# =============================================================================


class ModelRegistry:
    """Registry for loading and caching ONNX Runtime inference sessions.

    Example:
        >>> registry = ModelRegistry(models_dir=Path("models/"))
        >>> session = registry.get_session("heatmap")
        >>> heatmap = session.run(["heatmap"], {"img": tensor})[0]

    Attributes:
        models_dir: Base directory for ONNX model files
        config: Session configuration (thread settings, providers)
    """

    def __init__(
        self,
        models_dir: Path,
        config: SessionConfig | None = None,
    ) -> None:
        """Initialize ModelRegistry.

        Args:
            models_dir: Directory containing ONNX model files
            config: Session configuration (default: pipeline.yaml thread settings)
        """
        self.models_dir = Path(models_dir)
        self.config = config or SessionConfig()
        self.model_files = model_filenames()

        self._sessions: dict[str, "ort.InferenceSession"] = {}
        self._model_info: dict[str, ModelInfo] = {}
        self._lock = Lock()

        logger.info("ModelRegistry initialized")
        logger.info(f"  Models dir: {self.models_dir}")
        logger.info(f"  Intra-op threads: {self.config.intra_op_threads}")
        logger.info(f"  Inter-op threads: {self.config.inter_op_threads}")

    def model_path(self, model_name: str) -> Path:
        """Resolve the file path of a model.

        Known names map to their configured file; any other name is
        treated as a bare filename stem.
        """
        filename = self.model_files.get(model_name, f"{model_name}.onnx")
        return self.models_dir / filename

    def get_session(self, model_name: str) -> "ort.InferenceSession":
        """Get ONNX Runtime inference session for a model.

        Sessions are cached after first load. Thread-safe for concurrent access.

        Args:
            model_name: Name of model ("heatmap" or "point")

        Returns:
            ONNX Runtime InferenceSession ready for inference

        Raises:
            FileNotFoundError: If model file not found
        """
        with self._lock:
            if model_name not in self._sessions:
                self._load_model(model_name)

            return self._sessions[model_name]

    def get_model_info(self, model_name: str) -> ModelInfo:
        """Get information about a model, loading it if needed.

        Example:
            >>> info = registry.get_model_info("heatmap")
            >>> info.output_names
            ['heatmap']
        """
        if model_name not in self._model_info:
            self.get_session(model_name)

        return self._model_info[model_name]

    def _load_model(self, model_name: str) -> None:
        """Load a model into the registry.

        Raises:
            FileNotFoundError: If model file not found
        """
        import onnxruntime as ort

        model_path = self.model_path(model_name)

        if not model_path.exists():
            raise FileNotFoundError(
                f"Model file not found: {model_path}. "
                f"Run 'docscan fetch-models' or copy the model into {self.models_dir}."
            )

        logger.info(f"Loading model: {model_name} from {model_path}")

        sess_options = ort.SessionOptions()
        sess_options.intra_op_num_threads = self.config.intra_op_threads
        sess_options.inter_op_num_threads = self.config.inter_op_threads

        session = ort.InferenceSession(
            str(model_path),
            sess_options,
            providers=self.config.providers,
        )

        input_meta = session.get_inputs()[0]
        outputs = session.get_outputs()

        model_info = ModelInfo(
            name=model_name,
            path=model_path,
            input_name=input_meta.name,
            input_shape=tuple(input_meta.shape),
            input_dtype=np.dtype(_ONNX_TO_NUMPY.get(input_meta.type, np.float32)),
            output_names=[o.name for o in outputs],
            output_shapes=[tuple(o.shape) for o in outputs],
        )

        self._sessions[model_name] = session
        self._model_info[model_name] = model_info

        logger.info(f"  ✓ Loaded {model_name}")
        logger.info(f"    Input: {model_info.input_name} {model_info.input_shape}")
        logger.info(f"    Outputs: {model_info.output_names}")

    def is_loaded(self, model_name: str) -> bool:
        """Check if a model is already loaded."""
        return model_name in self._sessions

    def preload_all(self) -> None:
        """Preload all known models into cache.

        Avoids first-request loading latency. Missing files are logged
        and skipped.
        """
        for model_name in self.model_files:
            if not self.is_loaded(model_name):
                try:
                    self.get_session(model_name)
                except FileNotFoundError as e:
                    logger.warning(f"Could not preload {model_name}: {e}")

    def clear_cache(self) -> None:
        """Clear all cached sessions."""
        with self._lock:
            self._sessions.clear()
            self._model_info.clear()
            logger.info("Model cache cleared")

    def list_available(self) -> list[str]:
        """List models available in the models directory.

        Returns:
            List of model names that can be loaded
        """
        return [
            name
            for name in self.model_files
            if self.model_path(name).exists()
        ]


# =============================================================================
# Default Registry Singleton
# =============================================================================

_default_registry: ModelRegistry | None = None
_default_registry_lock = Lock()


def get_default_registry(
    models_dir: Path | None = None,
    config: SessionConfig | None = None,
) -> ModelRegistry:
    """Get or create the default ModelRegistry singleton.

    Args:
        models_dir: Directory containing models (default: ./models)
        config: Session configuration

    Returns:
        Shared ModelRegistry instance
    """
    global _default_registry

    with _default_registry_lock:
        if _default_registry is None:
            if models_dir is None:
                models_dir = Path.cwd() / "models"

            _default_registry = ModelRegistry(models_dir, config)

        return _default_registry


def reset_default_registry() -> None:
    """Reset the default registry singleton."""
    global _default_registry

    with _default_registry_lock:
        if _default_registry is not None:
            _default_registry.clear_cache()
        _default_registry = None
