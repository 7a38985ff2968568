"""Async wrappers over the callback bridge.

Each coroutine calls one bridge method and resolves with its result,
or raises BridgeError with the callback's error message. The callback
may run on the bridge's worker thread; the future is settled on the
awaiting event loop.

Example:
    >>> prepared = await preprocess(image_b64)
    >>> prepared["data"].shape
    (196608,)
    >>> corners = await postprocess_heatmap(heatmap, prepared["originalSize"])
"""

import asyncio
from typing import Any, Callable

import numpy as np

from docscan.bridge.module import OpenCvBridge, get_default_bridge
from docscan.bridge.operations import BridgeError
from docscan.processing import decode_float32_base64, encode_float32_base64


def _settle(future: asyncio.Future, error: str | None, result: Any) -> None:
    if future.done():
        return
    if error:
        future.set_exception(BridgeError(error))
    else:
        future.set_result(result)


async def _call(method: Callable[..., Any], *args: Any) -> Any:
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def callback(error: str | None, result: Any) -> None:
        loop.call_soon_threadsafe(_settle, future, error, result)

    method(*args, callback)
    return await future


async def preprocess(image_b64: str, bridge: OpenCvBridge | None = None) -> dict[str, Any]:
    """Prepare a photo for the models.

    Returns:
        {"data": float32 array of 3*256*256 values (CHW),
         "originalSize": {"width", "height"}}
    """
    bridge = bridge or get_default_bridge()
    res = await _call(bridge.preprocess, image_b64)
    return {
        "data": decode_float32_base64(res["data"]),
        "originalSize": res["originalSize"],
    }


async def postprocess_heatmap(
    heatmap: np.ndarray,
    original_size: dict[str, int],
    bridge: OpenCvBridge | None = None,
) -> list[list[float]]:
    """Extract corners from a raw heatmap tensor.

    Args:
        heatmap: Heatmap model output (any shape holding 4*128*128 values)
        original_size: {"width", "height"} as returned by preprocess
    """
    bridge = bridge or get_default_bridge()
    return await _call(
        bridge.postprocess_heatmap,
        encode_float32_base64(heatmap),
        original_size["width"],
        original_size["height"],
    )


async def transform_image(
    image_b64: str,
    corners: list,
    bridge: OpenCvBridge | None = None,
) -> dict[str, Any]:
    """Rectify a quad; resolves with {"data": <base64 PNG>, "width", "height"}."""
    bridge = bridge or get_default_bridge()
    return await _call(bridge.transform_image, image_b64, corners)


async def read_qr_code(image_b64: str, bridge: OpenCvBridge | None = None) -> dict[str, Any]:
    """Decode a QR code; resolves with {"found", "text"}."""
    bridge = bridge or get_default_bridge()
    res = await _call(bridge.read_qr_code, image_b64)
    return {"found": res["found"], "text": res["text"]}
