"""Callback-style bridge module.

OpenCvBridge is the surface an application shell binds to. Every
method takes its arguments plus a response callback and reports the
outcome as ``callback(error, result)``:

    bridge.preprocess(image_b64, callback)
    bridge.postprocess_heatmap(heatmap_b64, width, height, callback)
    bridge.transform_image(image_b64, corners, callback)
    bridge.read_qr_code(image_b64, callback)

Exactly one of error/result is None, and the callback fires exactly
once per call. Work runs on the bridge's method queue: inline when no
executor is given, otherwise on that executor.
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable

from docscan.bridge import operations
from docscan.bridge.operations import BridgeError

logger = logging.getLogger(__name__)

ResponseCallback = Callable[[str | None, Any], None]
"""callback(error, result)"""


class OpenCvBridge:
    """Bridge module exposing image operations through response callbacks.

    Attributes:
        name: Module name registered with the application shell
        method_queue: Executor running the operations (None: run inline)

    Example:
        >>> bridge = OpenCvBridge()
        >>> bridge.preprocess(image_b64, lambda err, res: print(err, res["originalSize"]))
        None {'width': 640, 'height': 480}
    """

    name = "RNOpenCvLibrary"

    def __init__(self, method_queue: Executor | None = None) -> None:
        self.method_queue = method_queue

    # ------------------------------------------------------------------
    # Exported methods
    # ------------------------------------------------------------------

    def preprocess(self, image_b64: str, callback: ResponseCallback) -> Future | None:
        """Resize and normalize a photo for the DocAligner models."""
        return self._dispatch("preprocess", operations.preprocess, callback, image_b64)

    def postprocess_heatmap(
        self,
        heatmap_b64: str,
        width: int,
        height: int,
        callback: ResponseCallback,
    ) -> Future | None:
        """Extract corner points from a serialized heatmap."""
        return self._dispatch(
            "postprocessHeatmap",
            operations.postprocess_heatmap,
            callback,
            heatmap_b64,
            width,
            height,
        )

    def transform_image(
        self,
        image_b64: str,
        corners: list,
        callback: ResponseCallback,
    ) -> Future | None:
        """Rectify the quad bounded by `corners`."""
        return self._dispatch(
            "transformImage", operations.transform_image, callback, image_b64, corners
        )

    def read_qr_code(self, image_b64: str, callback: ResponseCallback) -> Future | None:
        """Decode a QR code in a photo."""
        return self._dispatch("readQRCode", operations.read_qr_code, callback, image_b64)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(
        self,
        method: str,
        func: Callable[..., Any],
        callback: ResponseCallback,
        *args: Any,
    ) -> Future | None:
        """Run `func` on the method queue and report through `callback`.

        Returns:
            The executor Future when a method queue is set, else None
            (the callback has already fired)
        """
        if self.method_queue is None:
            self._invoke(method, func, callback, args)
            return None

        return self.method_queue.submit(self._invoke, method, func, callback, args)

    @staticmethod
    def _invoke(
        method: str,
        func: Callable[..., Any],
        callback: ResponseCallback,
        args: tuple,
    ) -> None:
        try:
            result = func(*args)
        except BridgeError as e:
            logger.info(f"{method} rejected input: {e}")
            error, result = str(e), None
        except Exception as e:
            logger.error(f"{method} failed: {e}", exc_info=True)
            error, result = f"Error in {method}: {e}", None
        else:
            error = None

        callback(error, result)


# =============================================================================
# Default Bridge Singleton
# =============================================================================

_default_bridge: OpenCvBridge | None = None
_default_bridge_lock = Lock()


def get_default_bridge() -> OpenCvBridge:
    """Get or create the process-wide bridge.

    The default bridge runs on a single worker thread, so calls complete
    one at a time in submission order.
    """
    global _default_bridge

    with _default_bridge_lock:
        if _default_bridge is None:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="docscan-bridge")
            _default_bridge = OpenCvBridge(method_queue=executor)

        return _default_bridge


def shutdown_default_bridge(wait: bool = True) -> None:
    """Stop the default bridge's worker thread and drop the singleton."""
    global _default_bridge

    with _default_bridge_lock:
        if _default_bridge is not None and _default_bridge.method_queue is not None:
            _default_bridge.method_queue.shutdown(wait=wait)
        _default_bridge = None
