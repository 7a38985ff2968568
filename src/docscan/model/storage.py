"""Model file provisioning from MinIO object storage.

Model files live in a bucket under a common prefix:

    models/
    └── docaligner/
        ├── model_heat.onnx
        └── model_point.onnx

`ensure_models` copies whatever is missing into the local models
directory before the registry opens sessions; `upload_models` is the
reverse, used by scripts/upload_models.py.
"""

import logging
from pathlib import Path
from typing import Iterable

from minio import Minio
from minio.error import S3Error

from docscan.config import get_section
from docscan.model.registry import model_filenames

logger = logging.getLogger(__name__)

_storage_config = get_section("storage")
DEFAULT_BUCKET: str = _storage_config["bucket"]
DEFAULT_PREFIX: str = _storage_config["prefix"]


def create_client(
    endpoint: str,
    access_key: str,
    secret_key: str,
    secure: bool = False,
) -> Minio:
    """Create a MinIO client."""
    return Minio(
        endpoint,
        access_key=access_key,
        secret_key=secret_key,
        secure=secure,
    )


def object_name(filename: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Object key of a model file.

    Example:
        >>> object_name("model_heat.onnx")
        'docaligner/model_heat.onnx'
    """
    prefix = prefix.strip("/")
    return f"{prefix}/{filename}" if prefix else filename


def ensure_models(
    models_dir: Path,
    client: Minio,
    bucket: str = DEFAULT_BUCKET,
    prefix: str = DEFAULT_PREFIX,
    model_names: Iterable[str] | None = None,
) -> list[Path]:
    """Download model files that are missing locally.

    Args:
        models_dir: Local models directory (created if needed)
        client: MinIO client
        bucket: Bucket holding the models
        prefix: Key prefix inside the bucket
        model_names: Subset of models to fetch (default: all configured)

    Returns:
        Paths of the files that were downloaded (empty if all present)

    Raises:
        S3Error: If a missing model cannot be downloaded
    """
    models_dir = Path(models_dir)
    models_dir.mkdir(parents=True, exist_ok=True)

    filenames = model_filenames()
    names = list(model_names) if model_names is not None else list(filenames)

    fetched = []
    for name in names:
        filename = filenames[name]
        local_path = models_dir / filename

        if local_path.exists():
            logger.info(f"{name} already exists at {local_path}")
            continue

        key = object_name(filename, prefix)
        logger.info(f"Downloading {name} from {bucket}/{key}")
        try:
            client.fget_object(bucket, key, str(local_path))
        except S3Error as e:
            logger.error(f"Failed to download {bucket}/{key}: {e}")
            raise

        logger.info(f"Downloaded {name} to {local_path}")
        fetched.append(local_path)

    return fetched


def upload_models(
    models_dir: Path,
    client: Minio,
    bucket: str = DEFAULT_BUCKET,
    prefix: str = DEFAULT_PREFIX,
) -> list[str]:
    """Upload local model files, creating the bucket if needed.

    Files missing locally are skipped with a warning.

    Returns:
        Object keys that were uploaded
    """
    models_dir = Path(models_dir)

    if not client.bucket_exists(bucket):
        client.make_bucket(bucket)
        logger.info(f"Created bucket: {bucket}")

    uploaded = []
    for name, filename in model_filenames().items():
        local_path = models_dir / filename
        if not local_path.exists():
            logger.warning(f"Skipping {name}: local file not found: {local_path}")
            continue

        key = object_name(filename, prefix)
        size_mb = local_path.stat().st_size / (1024 * 1024)
        logger.info(f"Uploading {local_path} → {bucket}/{key} ({size_mb:.2f} MB)")
        client.fput_object(bucket, key, str(local_path))
        uploaded.append(key)

    return uploaded
