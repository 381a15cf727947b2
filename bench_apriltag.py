import argparse
import json
import logging
import statistics
import time
from typing import Any, Dict

import cv2
import numpy as np

from tagsight import create_detector
from tagsight.config import configure_logging
from tagsight.synthetic import render_grid, to_rgb

logger = logging.getLogger(__name__)


def _load_frame(args: argparse.Namespace) -> np.ndarray:
    if args.image:
        frame = cv2.imread(args.image, cv2.IMREAD_COLOR)
        if frame is None:
            raise RuntimeError(f"Failed to read image {args.image}")
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    board = render_grid(
        args.family, args.rows, args.cols, black_border=args.black_border
    )
    return to_rgb(board.image)


def run_benchmark(args: argparse.Namespace) -> Dict[str, Any]:
    detector = create_detector(args.family, {"blackBorder": args.black_border})
    frame = _load_frame(args)
    if args.gray and frame.ndim == 3:
        frame = cv2.cvtColor(frame, cv2.COLOR_RGB2GRAY)

    height, width = frame.shape[:2]
    buffer = frame.tobytes()

    processing_times: list[float] = []
    tag_counts: list[int] = []
    with detector:
        for _ in range(args.frames):
            start = time.perf_counter()
            detections = detector.detect(buffer, width, height)
            processing_times.append((time.perf_counter() - start) * 1000.0)
            tag_counts.append(len(detections))

    fps = len(processing_times) / (sum(processing_times) / 1000.0) if processing_times else 0.0

    return {
        "frames_processed": len(processing_times),
        "image_size": [width, height],
        "mean_latency_ms": statistics.mean(processing_times) if processing_times else 0,
        "p95_latency_ms": statistics.quantiles(processing_times, n=20)[-1]
        if len(processing_times) >= 20
        else max(processing_times, default=0.0),
        "fps": fps,
        "mean_tags": statistics.mean(tag_counts) if tag_counts else 0,
    }


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Benchmark AprilTag detection throughput."
    )
    parser.add_argument(
        "--image",
        type=str,
        default=None,
        help="Image file to detect on (default: a rendered tag board)",
    )
    parser.add_argument(
        "--family",
        default="36h11",
        help="Tag family (default: 36h11)",
    )
    parser.add_argument(
        "--black-border",
        type=int,
        default=1,
        help="Black border width in bits; use 2 for Kalibr AprilGrid (default: 1)",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=200,
        help="Number of detect calls to time (default: 200)",
    )
    parser.add_argument("--rows", type=int, default=4, help="Rendered board rows")
    parser.add_argument("--cols", type=int, default=6, help="Rendered board columns")
    parser.add_argument(
        "--gray",
        action="store_true",
        help="Pass a single-channel buffer instead of RGB",
    )
    parser.add_argument("--json", action="store_true", help="Print metrics as JSON")

    args = parser.parse_args()
    configure_logging()
    metrics = run_benchmark(args)

    if args.json:
        print(json.dumps(metrics, indent=2))
        return

    print("Frames processed:", metrics["frames_processed"])
    print("Image size: {}x{}".format(*metrics["image_size"]))
    print(f"Mean latency: {metrics['mean_latency_ms']:.2f} ms")
    print(f"P95 latency: {metrics['p95_latency_ms']:.2f} ms")
    print(f"Effective FPS: {metrics['fps']:.2f}")
    print(f"Tags per frame: {metrics['mean_tags']:.1f}")


if __name__ == "__main__":
    main()
