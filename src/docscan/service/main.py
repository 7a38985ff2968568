"""FastAPI application for the document alignment service.

This module provides the HTTP API:
- POST /preprocess: Model input tensor for a photo
- POST /postprocess-heatmap: Corners from a serialized heatmap
- POST /transform: Rectify a quad given its corners
- POST /qr: Decode a QR code
- POST /align: Detect the document and rectify it
- GET /health: Service health check

The first four mirror the bridge operations one to one. Missing models
are fetched from MinIO on startup when MINIO_ENDPOINT is set.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException

from docscan.aligner import DocAligner
from docscan.bridge import operations
from docscan.bridge.operations import BridgeError
from docscan.model.registry import ModelRegistry
from docscan.model.storage import create_client, ensure_models
from docscan.processing import encode_png_base64, load_image_from_base64

from .config import get_settings
from .logger import request_id_var, setup_logging
from .models import (
    AlignRequest,
    AlignResponse,
    HealthResponse,
    HeatmapRequest,
    HeatmapResponse,
    ImageRequest,
    PreprocessResponse,
    QRResponse,
    TransformedImage,
    TransformRequest,
    TransformResponse,
)

# Global state (initialized during lifespan)
registry: ModelRegistry | None = None
aligner: DocAligner | None = None
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    - Startup: Setup logging, fetch missing models, open sessions
    - Shutdown: Drop cached sessions
    """
    global registry, aligner
    settings = get_settings()

    setup_logging(settings.LOG_LEVEL)
    logger.info("Starting docscan service", extra={"port": settings.PORT})

    models_dir = Path(settings.MODELS_DIR)

    if settings.MINIO_ENDPOINT:
        client = create_client(
            settings.MINIO_ENDPOINT,
            settings.MINIO_ACCESS_KEY,
            settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
        )
        ensure_models(models_dir, client, settings.MINIO_BUCKET, settings.MINIO_PREFIX)
    else:
        logger.info("MINIO_ENDPOINT not set, using local models only")

    registry = ModelRegistry(models_dir)
    if settings.PRELOAD_MODELS:
        registry.preload_all()

    aligner = DocAligner(registry)
    logger.info("Service ready for requests")

    yield

    logger.info("Shutting down docscan service")
    registry.clear_cache()
    registry = None
    aligner = None


app = FastAPI(
    title="docscan",
    description="Document detection and perspective rectification",
    version="0.1.0",
    lifespan=lifespan,
)


def _new_request(endpoint: str) -> str:
    request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    logger.info("Received request", extra={"endpoint": endpoint})
    return request_id


def _bad_request(endpoint: str, error: Exception) -> HTTPException:
    logger.info(
        f"Rejected input: {error}",
        extra={"endpoint": endpoint, "status_code": 400},
    )
    return HTTPException(status_code=400, detail=str(error))


# =============================================================================
# Bridge Operations
# =============================================================================


@app.post("/preprocess", response_model=PreprocessResponse)
def preprocess(body: ImageRequest):
    """Resize and normalize a photo; returns the float32 tensor as base64."""
    request_id = _new_request("/preprocess")
    try:
        result = operations.preprocess(body.image)
    except BridgeError as e:
        raise _bad_request("/preprocess", e)

    return PreprocessResponse(request_id=request_id, **result)


@app.post("/postprocess-heatmap", response_model=HeatmapResponse)
def postprocess_heatmap(body: HeatmapRequest):
    """Extract corner points from a serialized 4x128x128 heatmap."""
    request_id = _new_request("/postprocess-heatmap")
    try:
        polygon = operations.postprocess_heatmap(body.heatmap, body.width, body.height)
    except BridgeError as e:
        raise _bad_request("/postprocess-heatmap", e)

    return HeatmapResponse(request_id=request_id, polygon=polygon)


@app.post("/transform", response_model=TransformResponse)
def transform(body: TransformRequest):
    """Rectify the quad bounded by the given corners."""
    request_id = _new_request("/transform")
    try:
        result = operations.transform_image(body.image, body.corners)
    except BridgeError as e:
        raise _bad_request("/transform", e)

    return TransformResponse(request_id=request_id, **result)


@app.post("/qr", response_model=QRResponse)
def qr(body: ImageRequest):
    """Decode a QR code."""
    request_id = _new_request("/qr")
    try:
        result = operations.read_qr_code(body.image)
    except BridgeError as e:
        raise _bad_request("/qr", e)

    return QRResponse(request_id=request_id, **result)


# =============================================================================
# Pipeline
# =============================================================================


@app.post("/align", response_model=AlignResponse)
def align(body: AlignRequest):
    """Detect the document in a photo and rectify it.

    Raises:
        HTTPException: 400 for undecodable images, 503 if the service is
            not ready or models are missing, 500 on inference failure
    """
    request_id = _new_request("/align")

    if aligner is None:
        logger.error("Aligner not initialized", extra={"endpoint": "/align"})
        raise HTTPException(status_code=503, detail="Service not ready")

    t0 = time.perf_counter()
    try:
        image = load_image_from_base64(body.image)
    except ValueError as e:
        raise _bad_request("/align", e)

    try:
        result = aligner.align(image, transform=body.transform)
    except FileNotFoundError as e:
        logger.error(f"Models unavailable: {e}", extra={"endpoint": "/align", "status_code": 503})
        raise HTTPException(status_code=503, detail="Models not available")
    except Exception as e:
        logger.error(
            f"Align failed: {e}",
            extra={"endpoint": "/align", "status_code": 500},
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=str(e))

    transformed = None
    if result.transformed is not None:
        transformed = TransformedImage(
            data=encode_png_base64(result.transformed.image),
            width=result.transformed.width,
            height=result.transformed.height,
        )

    detection = result.detection
    corners = [[x, y] for x, y in detection.polygon] if detection.found else None
    total_ms = (time.perf_counter() - t0) * 1000

    logger.info(
        "Align complete",
        extra={
            "endpoint": "/align",
            "latency_ms": total_ms,
            "source": detection.source.name,
            "corners": corners,
            "status_code": 200,
        },
    )

    return AlignResponse(
        request_id=request_id,
        corners=corners,
        source=detection.source.name,
        transformed=transformed,
        timing={"total_ms": total_ms},
    )


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    request_id_var.set(str(uuid.uuid4()))

    if registry is None:
        return HealthResponse(status="starting", models_available=[], models_loaded=[])

    return HealthResponse(
        status="healthy",
        models_available=registry.list_available(),
        models_loaded=[name for name in registry.model_files if registry.is_loaded(name)],
    )
