"""
Unit Tests for Model Module

This module tests:
- registry.py: Session loading, caching, configuration
- storage.py: MinIO download/upload of model files

Test Categories:
- Registry tests: Lazy loading, metadata, preload, singleton
- Storage tests: Object keys, skip-if-present, bucket creation
"""

from pathlib import Path
from unittest.mock import MagicMock

import numpy as np
import pytest

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
    DEFAULT_BUCKET,
    DEFAULT_PREFIX,
    ensure_models,
    object_name,
    upload_models,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def clean_default_registry():
    reset_default_registry()
    yield
    reset_default_registry()


@pytest.fixture
def minio_client() -> MagicMock:
    """MinIO client stub that writes a placeholder file on download."""
    client = MagicMock()

    def fget_object(bucket, key, file_path):
        Path(file_path).write_bytes(b"onnx")

    client.fget_object.side_effect = fget_object
    client.bucket_exists.return_value = True
    return client


# =============================================================================
# Session Config Tests
# =============================================================================

class TestSessionConfig:
    """Test ONNX Runtime session configuration."""

    def test_defaults_from_pipeline(self) -> None:
        config = SessionConfig()

        assert config.intra_op_threads == DEFAULT_INTRA_OP_THREADS == 2
        assert config.inter_op_threads == DEFAULT_INTER_OP_THREADS == 1
        assert config.providers == ["CPUExecutionProvider"]

    def test_providers_not_shared(self) -> None:
        a, b = SessionConfig(), SessionConfig()
        a.providers.append("CUDAExecutionProvider")

        assert b.providers == ["CPUExecutionProvider"]


def test_model_filenames() -> None:
    assert model_filenames() == {
        "heatmap": "model_heat.onnx",
        "point": "model_point.onnx",
    }


# =============================================================================
# Registry Tests
# =============================================================================

class TestModelRegistry:
    """Test ModelRegistry loading and caching."""

    def test_model_path(self, tmp_path) -> None:
        registry = ModelRegistry(tmp_path)

        assert registry.model_path("heatmap") == tmp_path / "model_heat.onnx"
        assert registry.model_path("custom") == tmp_path / "custom.onnx"

    def test_missing_model_raises(self, tmp_path) -> None:
        registry = ModelRegistry(tmp_path)

        with pytest.raises(FileNotFoundError, match="docscan fetch-models"):
            registry.get_session("heatmap")

    def test_list_available(self, models_dir, tmp_path) -> None:
        assert ModelRegistry(models_dir).list_available() == ["heatmap", "point"]
        assert ModelRegistry(tmp_path / "empty").list_available() == []

    def test_lazy_loading(self, models_dir) -> None:
        registry = ModelRegistry(models_dir)
        assert not registry.is_loaded("heatmap")

        registry.get_session("heatmap")

        assert registry.is_loaded("heatmap")
        assert not registry.is_loaded("point")

    def test_session_is_cached(self, models_dir) -> None:
        registry = ModelRegistry(models_dir)

        assert registry.get_session("point") is registry.get_session("point")

    def test_model_info(self, models_dir) -> None:
        info = ModelRegistry(models_dir).get_model_info("point")

        assert isinstance(info, ModelInfo)
        assert info.input_name == "img"
        assert info.input_shape == (1, 3, 256, 256)
        assert info.input_dtype == np.float32
        assert info.output_names == ["points", "has_obj"]
        assert info.output_shapes == [(1, 8), (1, 1)]

    def test_session_runs(self, models_dir, corner_heatmap) -> None:
        session = ModelRegistry(models_dir).get_session("heatmap")
        tensor = np.zeros((1, 3, 256, 256), dtype=np.float32)

        heatmap = session.run(["heatmap"], {"img": tensor})[0]

        assert heatmap.shape == (1, 4, 128, 128)
        assert np.allclose(heatmap[0], corner_heatmap)

    def test_preload_all(self, models_dir) -> None:
        registry = ModelRegistry(models_dir)
        registry.preload_all()

        assert registry.is_loaded("heatmap")
        assert registry.is_loaded("point")

    def test_preload_skips_missing(self, models_dir) -> None:
        (models_dir / "model_point.onnx").unlink()
        registry = ModelRegistry(models_dir)

        registry.preload_all()

        assert registry.is_loaded("heatmap")
        assert not registry.is_loaded("point")

    def test_clear_cache(self, models_dir) -> None:
        registry = ModelRegistry(models_dir)
        registry.preload_all()

        registry.clear_cache()

        assert not registry.is_loaded("heatmap")


class TestDefaultRegistry:
    """Test the default registry singleton."""

    def test_singleton(self, tmp_path) -> None:
        first = get_default_registry(tmp_path)
        assert get_default_registry() is first
        assert first.models_dir == tmp_path

    def test_reset(self, tmp_path) -> None:
        first = get_default_registry(tmp_path)
        reset_default_registry()

        assert get_default_registry(tmp_path) is not first

    def test_default_dir_is_cwd_models(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)

        assert get_default_registry().models_dir == tmp_path / "models"


# =============================================================================
# Storage Tests
# =============================================================================

class TestObjectName:
    """Test object key construction."""

    def test_default_prefix(self) -> None:
        assert DEFAULT_BUCKET == "models"
        assert object_name("model_heat.onnx") == f"{DEFAULT_PREFIX}/model_heat.onnx"

    @pytest.mark.parametrize(
        "prefix, expected",
        [
            ("docs/", "docs/model_point.onnx"),
            ("/a/b/", "a/b/model_point.onnx"),
            ("", "model_point.onnx"),
        ],
    )
    def test_prefix_normalized(self, prefix, expected) -> None:
        assert object_name("model_point.onnx", prefix) == expected


class TestEnsureModels:
    """Test downloading missing models."""

    def test_downloads_all_missing(self, tmp_path, minio_client) -> None:
        models_dir = tmp_path / "models"

        fetched = ensure_models(models_dir, minio_client, "bucket", "docaligner")

        assert fetched == [models_dir / "model_heat.onnx", models_dir / "model_point.onnx"]
        assert (models_dir / "model_heat.onnx").exists()
        minio_client.fget_object.assert_any_call(
            "bucket", "docaligner/model_heat.onnx", str(models_dir / "model_heat.onnx")
        )

    def test_skips_existing(self, tmp_path, minio_client) -> None:
        (tmp_path / "model_heat.onnx").write_bytes(b"local")

        fetched = ensure_models(tmp_path, minio_client)

        assert fetched == [tmp_path / "model_point.onnx"]
        assert minio_client.fget_object.call_count == 1
        assert (tmp_path / "model_heat.onnx").read_bytes() == b"local"

    def test_subset(self, tmp_path, minio_client) -> None:
        fetched = ensure_models(tmp_path, minio_client, model_names=["point"])

        assert fetched == [tmp_path / "model_point.onnx"]

    def test_download_error_propagates(self, tmp_path, minio_client) -> None:
        minio_client.fget_object.side_effect = RuntimeError("connection refused")

        with pytest.raises(RuntimeError, match="connection refused"):
            ensure_models(tmp_path, minio_client)


class TestUploadModels:
    """Test uploading local models."""

    def test_uploads_present_files(self, tmp_path, minio_client) -> None:
        (tmp_path / "model_heat.onnx").write_bytes(b"heat")

        uploaded = upload_models(tmp_path, minio_client, "bucket", "docaligner")

        assert uploaded == ["docaligner/model_heat.onnx"]
        minio_client.fput_object.assert_called_once_with(
            "bucket", "docaligner/model_heat.onnx", str(tmp_path / "model_heat.onnx")
        )
        minio_client.make_bucket.assert_not_called()

    def test_creates_bucket(self, tmp_path, minio_client) -> None:
        minio_client.bucket_exists.return_value = False

        upload_models(tmp_path, minio_client, "fresh")

        minio_client.make_bucket.assert_called_once_with("fresh")
