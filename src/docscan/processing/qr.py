"""QR code reading with OpenCV's QRCodeDetector.

Used to pick up links printed on slides next to the document
rectification flow.
"""

from dataclasses import dataclass, field

import cv2
import numpy as np

from docscan.processing.transforms import Polygon


@dataclass
class QRResult:
    """Result container for QR decoding.

    Attributes:
        found: True when a code was detected and decoded to non-empty text
        text: Decoded payload ("" when nothing was found)
        corners: Four corner points of the code, when available
    """

    found: bool
    text: str = ""
    corners: Polygon = field(default_factory=list)

    def to_dict(self) -> dict:
        result = {"found": self.found, "text": self.text}
        if self.corners:
            result["corners"] = [[x, y] for x, y in self.corners]
        return result


def read_qr_code(image: np.ndarray) -> QRResult:
    """Detect and decode a single QR code.

    Args:
        image: RGB uint8 array with shape [H, W, 3]

    Returns:
        QRResult; `found` is False when no code could be decoded
    """
    gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)

    detector = cv2.QRCodeDetector()
    text, points, _ = detector.detectAndDecode(gray)

    if not text:
        return QRResult(found=False)

    corners: Polygon = []
    if points is not None:
        flat = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(flat) == 4:
            corners = [(float(x), float(y)) for x, y in flat]

    return QRResult(found=True, text=text, corners=corners)
