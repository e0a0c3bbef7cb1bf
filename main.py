#!/usr/bin/env python3
"""
segment-photo: segment one photo from disk or from the camera.

    segment-photo holiday.jpg
    segment-photo --camera --camera-index 1
"""
import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from models.capture import CaptureMode
from pipeline.segment_photo import capture_and_segment
from repositories.capture_repository import CAMERA_INDEX, CameraCaptureRepository, GalleryCaptureRepository
from repositories.segmentation_repository import SegmentationRepository
from services.acquisition_service import AcquisitionService

EXIT_OK = 0
EXIT_SEGMENTATION_ERROR = 1
EXIT_NOTHING_ACQUIRED = 2
EXIT_TIMED_OUT = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="segment-photo", description=__doc__.strip().splitlines()[0])
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("path", nargs="?", help="image file to segment")
    source.add_argument("--camera", action="store_true", help="take the photo with a local camera")
    parser.add_argument("--camera-index", type=int, default=CAMERA_INDEX)
    parser.add_argument("--model", default=None, help="TFLite segmentation model (default: $SEGMENTATION_MODEL_PATH)")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"))
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.camera:
        mode = CaptureMode.CAMERA
        sources = {mode: CameraCaptureRepository(camera_index=args.camera_index)}
    else:
        mode = CaptureMode.GALLERY
        sources = {mode: GalleryCaptureRepository(args.path)}

    try:
        outcome = asyncio.run(capture_and_segment(
            AcquisitionService(sources),
            mode,
            segmentation_repository=SegmentationRepository(model_path=args.model),
        ))
    except asyncio.TimeoutError:
        print("Timed out waiting for the image to decode or segment.", file=sys.stderr)
        return EXIT_TIMED_OUT

    if outcome is None:
        print("No image acquired, nothing to segment.", file=sys.stderr)
        return EXIT_NOTHING_ACQUIRED

    if not outcome.ok:
        print(f"Segmentation failed: {outcome.error}", file=sys.stderr)
        return EXIT_SEGMENTATION_ERROR

    print(f"{outcome.handle.path.name}: {outcome.image_width}x{outcome.image_height}, "
          f"rotation {outcome.rotation_degrees}°, inference {outcome.inference_time_ms} ms")
    for label in outcome.color_labels:
        r, g, b = label.color
        print(f"  [{label.id:3d}] {label.label:<20} #{r:02x}{g:02x}{b:02x}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
