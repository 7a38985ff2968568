"""
docscan command line interface.

Usage:
    # Detect and rectify a document
    docscan align photo.jpg -o page.png

    # Rectify with known corners (TL TR BR BL)
    docscan transform photo.jpg --corners 10,12 620,30 600,460 25,440 -o page.png

    # Read a QR code
    docscan qr slide.jpg

    # Download missing models from MinIO
    docscan fetch-models

    # Run the HTTP service
    docscan serve

Results are printed as JSON. Settings (MODELS_DIR, MINIO_*, LOG_LEVEL)
come from the environment or a .env file.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from docscan.aligner import DocAligner
from docscan.model.registry import ModelRegistry
from docscan.model.storage import create_client, ensure_models
from docscan.processing import encode_png, load_image, read_qr_code, transform_image
from docscan.service.config import get_settings

logger = logging.getLogger("docscan")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _parse_point(text: str) -> tuple[float, float]:
    try:
        x, y = text.split(",")
        return float(x), float(y)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected x,y but got '{text}'")


def _write_png(image, output: Path) -> None:
    output.write_bytes(encode_png(image))
    logger.info(f"Wrote {output}")


# =============================================================================
# Commands
# =============================================================================


def cmd_align(args: argparse.Namespace) -> int:
    image = load_image(args.image)
    aligner = DocAligner(ModelRegistry(args.models_dir))
    result = aligner.align(image, transform=args.output is not None)

    detection = result.detection
    report = {
        "corners": [list(p) for p in detection.polygon] if detection.found else None,
        "source": detection.source.name,
    }

    if result.transformed is not None:
        _write_png(result.transformed.image, args.output)
        report["output"] = str(args.output)
        report["width"] = result.transformed.width
        report["height"] = result.transformed.height

    print(json.dumps(report))

    if args.output is not None and result.transformed is None:
        return 1
    return 0 if detection.found else 1


def cmd_transform(args: argparse.Namespace) -> int:
    image = load_image(args.image)
    result = transform_image(image, args.corners)
    _write_png(result.image, args.output)

    print(json.dumps({"output": str(args.output), "width": result.width, "height": result.height}))
    return 0


def cmd_qr(args: argparse.Namespace) -> int:
    result = read_qr_code(load_image(args.image))
    print(json.dumps(result.to_dict()))
    return 0 if result.found else 1


def cmd_fetch_models(args: argparse.Namespace) -> int:
    settings = get_settings()
    if not settings.MINIO_ENDPOINT:
        logger.error("MINIO_ENDPOINT is not set")
        return 1

    client = create_client(
        settings.MINIO_ENDPOINT,
        settings.MINIO_ACCESS_KEY,
        settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_SECURE,
    )
    fetched = ensure_models(args.models_dir, client, settings.MINIO_BUCKET, settings.MINIO_PREFIX)

    print(json.dumps({"fetched": [str(p) for p in fetched]}))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "docscan.service.main:app",
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
        log_config=None,
    )
    return 0


# =============================================================================
# Entry Point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    default_models = Path(settings.MODELS_DIR)

    parser = argparse.ArgumentParser(
        prog="docscan",
        description="Document detection and perspective rectification",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_align = sub.add_parser("align", help="Detect the document and rectify it")
    p_align.add_argument("image", type=Path)
    p_align.add_argument("-o", "--output", type=Path, help="Write rectified PNG here")
    p_align.add_argument("--models-dir", type=Path, default=default_models)
    p_align.set_defaults(func=cmd_align)

    p_transform = sub.add_parser("transform", help="Rectify with known corners")
    p_transform.add_argument("image", type=Path)
    p_transform.add_argument(
        "--corners",
        type=_parse_point,
        nargs=4,
        required=True,
        metavar="X,Y",
        help="Corners in order top-left, top-right, bottom-right, bottom-left",
    )
    p_transform.add_argument("-o", "--output", type=Path, required=True)
    p_transform.set_defaults(func=cmd_transform)

    p_qr = sub.add_parser("qr", help="Decode a QR code")
    p_qr.add_argument("image", type=Path)
    p_qr.set_defaults(func=cmd_qr)

    p_fetch = sub.add_parser("fetch-models", help="Download missing models from MinIO")
    p_fetch.add_argument("--models-dir", type=Path, default=default_models)
    p_fetch.set_defaults(func=cmd_fetch_models)

    p_serve = sub.add_parser("serve", help="Run the HTTP service")
    p_serve.add_argument("--host")
    p_serve.add_argument("--port", type=int)
    p_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return args.func(args)
    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
