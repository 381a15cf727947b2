"""Detect AprilTags in an image file.

Prints every detected tag and writes a copy of the image with outlines,
numbered corners, centers and ids drawn on it.

Examples:
    python scripts/detect_image.py data/tag36h11.png
    python scripts/detect_image.py data/aprilgrid.png --black-border 2
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import cv2

from tagsight import create_detector
from tagsight.annotate import draw_detections, summarize
from tagsight.config import configure_logging
from tagsight.exceptions import TagSightError

logger = logging.getLogger(__name__)


def detect_file(image_path: Path, family: str, black_border: int):
    image = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
    if image is None:
        raise FileNotFoundError(f"Failed to read image {image_path}")

    height, width = image.shape[:2]
    logger.info(f"Loaded {image_path} ({width}x{height})")

    rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    with create_detector(family, {"blackBorder": black_border}) as detector:
        detections = detector.detect(rgb.tobytes(), width, height)
    return image, detections


def main() -> int:
    parser = argparse.ArgumentParser(description="Detect AprilTags in an image file.")
    parser.add_argument("image", type=Path, help="Path to the image file")
    parser.add_argument("--family", default="36h11", help="Tag family (default: 36h11)")
    parser.add_argument(
        "--black-border",
        type=int,
        default=1,
        help="Black border width (1 or 2, default: 1). Use 2 for Kalibr AprilGrid targets",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Annotated image path (default: <image>_tags.png)",
    )
    parser.add_argument("--json", action="store_true", help="Print detections as JSON")
    args = parser.parse_args()
    configure_logging()

    try:
        image, detections = detect_file(args.image, args.family, args.black_border)
    except (OSError, TagSightError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([det.to_dict() for det in detections], indent=2))
    else:
        stats = summarize(detections)
        print(f"Detected {stats['total']} tags ({stats['good']} good, {stats['perfect']} perfect)")
        for i, tag in enumerate(detections, start=1):
            print(
                f"  Tag {i}: ID={tag.id}, Center=[{tag.center[0]:.1f}, {tag.center[1]:.1f}], "
                f"Hamming={tag.hamming_distance}"
            )

    output = args.output or args.image.with_name(f"{args.image.stem}_tags.png")
    cv2.imwrite(str(output), draw_detections(image, detections))
    print(f"Annotated image written to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
