"""Pydantic models for API request/response schemas.

Field names of the bridge payloads (originalSize, data) are kept so
HTTP clients and bridge callers handle identical JSON.
"""

from pydantic import BaseModel, Field


class ImageRequest(BaseModel):
    """Request carrying a base64 encoded image (JPEG, PNG, ...)."""

    image: str = Field(description="Base64 image, optionally as a data URI")


class HeatmapRequest(BaseModel):
    """Request for /postprocess-heatmap.

    Attributes:
        heatmap: Base64 little-endian float32 buffer of 4x128x128 values
        width: Original image width
        height: Original image height
    """

    heatmap: str
    width: int
    height: int


class TransformRequest(BaseModel):
    """Request for /transform.

    Attributes:
        image: Base64 image
        corners: Four [x, y] pairs ordered TL, TR, BR, BL
    """

    image: str
    corners: list[list[float]]


class AlignRequest(BaseModel):
    """Request for /align."""

    image: str
    transform: bool = True


class ImageSize(BaseModel):
    width: int
    height: int


class PreprocessResponse(BaseModel):
    """Response model for /preprocess.

    Attributes:
        request_id: Unique request identifier for tracing
        data: Base64 little-endian float32 tensor [1, 3, 256, 256]
        originalSize: Size of the decoded input image
    """

    request_id: str
    data: str
    originalSize: ImageSize


class HeatmapResponse(BaseModel):
    request_id: str
    polygon: list[list[float]]


class TransformedImage(BaseModel):
    """Rectified image as base64 PNG."""

    data: str
    width: int
    height: int


class TransformResponse(TransformedImage):
    request_id: str


class QRResponse(BaseModel):
    request_id: str
    found: bool
    text: str
    corners: list[list[float]] | None = None


class AlignResponse(BaseModel):
    """Response model for /align.

    Attributes:
        request_id: Unique request identifier for tracing
        corners: Detected quad, or None when no document was found
        source: "HEATMAP", "POINT" or "NONE"
        transformed: Rectified image when requested and a quad was found
        timing: Performance timing breakdown in milliseconds
    """

    request_id: str
    corners: list[list[float]] | None
    source: str
    transformed: TransformedImage | None = None
    timing: dict[str, float] = Field(
        description="Performance timing breakdown in milliseconds"
    )


class HealthResponse(BaseModel):
    """Response model for /health.

    Attributes:
        status: Service health status
        models_available: Models present in the models directory
        models_loaded: Models with an open inference session
    """

    status: str = "healthy"
    models_available: list[str]
    models_loaded: list[str]
