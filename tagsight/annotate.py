"""Drawing and summarizing detection results."""

from typing import Any, Dict, Sequence

import cv2
import numpy as np

from .detector import TagDetection

GOLDEN_ANGLE_DEG = 137.5


def _color_for(index: int):
    # OpenCV hue runs 0-179
    hue = int(((index * GOLDEN_ANGLE_DEG) % 360) / 2)
    hsv = np.uint8([[[hue, 200, 230]]])
    b, g, r = cv2.cvtColor(hsv, cv2.COLOR_HSV2BGR)[0, 0]
    return int(b), int(g), int(r)


def summarize(detections: Sequence[TagDetection]) -> Dict[str, Any]:
    """Counts of a detection result set."""
    ids = [det.id for det in detections]
    return {
        "total": len(detections),
        "good": sum(1 for det in detections if det.good),
        "perfect": sum(1 for det in detections if det.hamming_distance == 0),
        "id_range": (min(ids), max(ids)) if ids else None,
    }


def draw_detections(image: np.ndarray, detections: Sequence[TagDetection]) -> np.ndarray:
    """
    Draw tag outlines, numbered corners, centers and ids.

    Args:
        image: Grayscale or BGR image the detections were computed on

    Returns:
        An annotated BGR copy; the input is left untouched
    """
    if image.ndim == 2:
        annotated = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    else:
        annotated = image.copy()

    for index, det in enumerate(detections):
        color = _color_for(index)
        corners = np.array(det.corners, dtype=np.float64)
        cv2.polylines(annotated, [np.int32(np.round(corners))], True, color, 2)

        for corner_index, (x, y) in enumerate(np.int32(np.round(corners))):
            cv2.circle(annotated, (int(x), int(y)), 5, color, -1)
            cv2.putText(
                annotated,
                str(corner_index),
                (int(x) - 4, int(y) + 4),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.35,
                (255, 255, 255),
                1,
            )

        center = (int(round(det.center[0])), int(round(det.center[1])))
        cv2.circle(annotated, center, 6, color, -1)
        label = f"ID {det.id}"
        origin = (center[0] - 20, max(center[1] - 20, 12))
        cv2.putText(annotated, label, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 3)
        cv2.putText(annotated, label, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 1)

    return annotated
