"""
Test helpers shared across test modules.

Helpers:
    make_heatmap: Build a heatmap with blobs at given grid positions
    expected_corner: Where a grid blob lands after upscaling
    build_constant_model: Save an ONNX model emitting fixed outputs
    build_heatmap_model / build_point_model: DocAligner model stand-ins
"""

from pathlib import Path

import numpy as np
import pytest

HEATMAP_SIZE = 128


def make_heatmap(
    grid_corners: list[tuple[int, int] | None],
    half_size: int = 4,
) -> np.ndarray:
    """
    Build a [4, 128, 128] heatmap with a square blob of 1.0 per corner.

    Args:
        grid_corners: (gx, gy) blob centers per channel; None leaves
            the channel empty
        half_size: Blob half width in grid cells
    """
    heatmap = np.zeros((4, HEATMAP_SIZE, HEATMAP_SIZE), dtype=np.float32)
    for channel, corner in enumerate(grid_corners):
        if corner is None:
            continue
        gx, gy = corner
        heatmap[
            channel,
            gy - half_size : gy + half_size + 1,
            gx - half_size : gx + half_size + 1,
        ] = 1.0
    return heatmap


def expected_corner(grid_corner: tuple[int, int], size: tuple[int, int]) -> tuple[float, float]:
    """Pixel position of a grid blob center after bilinear upscaling to (width, height)."""
    gx, gy = grid_corner
    width, height = size
    scale_x = width / HEATMAP_SIZE
    scale_y = height / HEATMAP_SIZE
    return (gx + 0.5) * scale_x - 0.5, (gy + 0.5) * scale_y - 0.5


def build_constant_model(path: Path, outputs: dict[str, np.ndarray]) -> Path:
    """
    Save a minimal ONNX model with input "img" [1, 3, 256, 256] and
    fixed outputs.

    The input feeds a zero term added to every output so the graph
    keeps "img" as a live input.
    """
    onnx = pytest.importorskip("onnx")
    from onnx import TensorProto, helper, numpy_helper

    img = helper.make_tensor_value_info("img", TensorProto.FLOAT, [1, 3, 256, 256])

    nodes = [
        helper.make_node("ReduceMean", ["img"], ["img_mean"], keepdims=1),
        helper.make_node("Reshape", ["img_mean", "flat_shape"], ["img_flat"]),
        helper.make_node("Mul", ["img_flat", "zero"], ["img_zero"]),
    ]
    initializers = [
        numpy_helper.from_array(np.array([1], dtype=np.int64), name="flat_shape"),
        numpy_helper.from_array(np.zeros((1,), dtype=np.float32), name="zero"),
    ]
    graph_outputs = []

    for name, value in outputs.items():
        value = np.asarray(value, dtype=np.float32)
        initializers.append(numpy_helper.from_array(value, name=f"{name}_base"))
        nodes.append(helper.make_node("Add", [f"{name}_base", "img_zero"], [name]))
        graph_outputs.append(
            helper.make_tensor_value_info(name, TensorProto.FLOAT, list(value.shape))
        )

    graph = helper.make_graph(nodes, "constant_model", [img], graph_outputs, initializers)
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 17)])

    # IR version 9 for onnxruntime compatibility
    model.ir_version = 9

    onnx.save(model, str(path))
    return path


def build_heatmap_model(path: Path, heatmap: np.ndarray) -> Path:
    """Heatmap model emitting `heatmap` as [1, 4, 128, 128]."""
    return build_constant_model(path, {"heatmap": heatmap.reshape(1, 4, HEATMAP_SIZE, HEATMAP_SIZE)})


def build_point_model(path: Path, points: list[float], has_obj: float) -> Path:
    """Point model emitting normalized `points` [1, 8] and `has_obj` [1, 1]."""
    return build_constant_model(
        path,
        {
            "points": np.array([points], dtype=np.float32),
            "has_obj": np.array([[has_obj]], dtype=np.float32),
        },
    )

