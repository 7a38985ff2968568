#!/usr/bin/env python3
"""Upload DocAligner ONNX models to MinIO.

Uploads local models with the layout the service fetches on startup:
- docaligner/model_heat.onnx
- docaligner/model_point.onnx

Usage:
    python scripts/upload_models.py [--models-dir models]

Environment Variables:
    MINIO_ENDPOINT: MinIO endpoint (required)
    MINIO_ACCESS_KEY: Access key (default: minioadmin)
    MINIO_SECRET_KEY: Secret key (default: minioadmin)
    MINIO_BUCKET: Bucket name (default: models)
    MINIO_PREFIX: Key prefix (default: docaligner)
"""

import argparse
import logging
import sys
from pathlib import Path

from minio.error import S3Error

from docscan.model.registry import model_filenames
from docscan.model.storage import create_client, upload_models
from docscan.service.config import get_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Upload DocAligner models to MinIO")
    parser.add_argument("--models-dir", type=Path, default=Path(settings.MODELS_DIR))
    args = parser.parse_args()

    if not settings.MINIO_ENDPOINT:
        logger.error("MINIO_ENDPOINT is not set")
        return 1

    logger.info(f"Endpoint: {settings.MINIO_ENDPOINT}")
    logger.info(f"Bucket:   {settings.MINIO_BUCKET}/{settings.MINIO_PREFIX}")

    client = create_client(
        settings.MINIO_ENDPOINT,
        settings.MINIO_ACCESS_KEY,
        settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_SECURE,
    )

    try:
        uploaded = upload_models(
            args.models_dir,
            client,
            settings.MINIO_BUCKET,
            settings.MINIO_PREFIX,
        )
    except S3Error as e:
        logger.error(f"Upload failed: {e}")
        return 1

    expected = len(model_filenames())
    logger.info(f"Upload Summary: {len(uploaded)}/{expected} successful")
    return 0 if len(uploaded) == expected else 1


if __name__ == "__main__":
    sys.exit(main())
