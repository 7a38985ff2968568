"""
Bridge Module - Callback Interface for Application Shells

- operations: wire-level functions (base64 in, JSON-compatible out)
- module: OpenCvBridge, callback(error, result) methods on a method queue
- client: async wrappers that await the callback
"""

from docscan.bridge.module import (
    OpenCvBridge,
    ResponseCallback,
    get_default_bridge,
    shutdown_default_bridge,
)
from docscan.bridge.operations import BridgeError

__all__ = [
    "BridgeError",
    "OpenCvBridge",
    "ResponseCallback",
    "get_default_bridge",
    "shutdown_default_bridge",
]
