"""Tag detection engines.

An engine takes a canonical luminance image and returns raw detections. The
codeword table and the physical border width are fixed when the engine is
constructed.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple

import cv2
import cv2.aruco as aruco
import numpy as np

from .families import TagCodes
from .image import CanonicalImage

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

# Canonical tag frame; row i maps onto corner i.
TAG_FRAME_CORNERS = np.array(
    [
        [-1.0, -1.0],
        [1.0, -1.0],
        [1.0, 1.0],
        [-1.0, 1.0],
    ],
    dtype=np.float32,
)

# Pixels per bit cell when resampling a marker for bit readout.
_CELL_PIXELS = 8


@dataclass(frozen=True)
class RawDetection:
    id: int
    hamming: int
    good: bool
    center: Point
    corners: Tuple[Point, Point, Point, Point]
    homography: np.ndarray  # 3 x 3, float64


def homography_from_corners(corners: np.ndarray) -> np.ndarray:
    """Homography mapping the canonical tag frame onto the given image corners."""
    homography = cv2.getPerspectiveTransform(
        TAG_FRAME_CORNERS, np.asarray(corners, dtype=np.float32).reshape(4, 2)
    )
    return homography / homography[2, 2]


def project_point(homography: np.ndarray, x: float, y: float) -> Point:
    u, v, w = homography @ np.array([x, y, 1.0])
    return float(u / w), float(v / w)


class TagEngine(ABC):
    """
    Abstract base class for detection engines.

    Engines may raise cv2.error from extract_tags(); the detector treats it
    as fatal to that call only.
    """

    def __init__(self, codes: TagCodes, black_border: int = 1):
        """
        Initialize the engine.

        Args:
            codes: Codeword table of the family to decode
            black_border: Solid border width of the printed markers, in bits
        """
        self.codes = codes
        self.black_border = black_border

    @abstractmethod
    def extract_tags(self, image: CanonicalImage) -> List[RawDetection]:  # pragma: no cover
        """Detects tags in a canonical image, in engine emission order."""
        pass

    def close(self) -> None:
        """Releases engine resources."""
        pass


class ArucoTagEngine(TagEngine):
    """Engine backed by OpenCV's ArUco detector and its AprilTag dictionaries."""

    def __init__(
        self,
        codes: TagCodes,
        black_border: int = 1,
        error_recovery_bits: int = 1,
        corner_refinement: bool = True,
    ):
        super().__init__(codes, black_border)
        self.error_recovery_bits = error_recovery_bits

        self._dictionary = codes.load_dictionary()
        parameters = aruco.DetectorParameters()
        parameters.markerBorderBits = black_border
        if corner_refinement:
            parameters.cornerRefinementMethod = aruco.CORNER_REFINE_SUBPIX
        self._detector = aruco.ArucoDetector(self._dictionary, parameters)

    def extract_tags(self, image: CanonicalImage) -> List[RawDetection]:
        corners, ids, _ = self._detector.detectMarkers(image.pixels)
        if ids is None or len(ids) == 0:
            return []

        detections: List[RawDetection] = []
        for marker_corners, tag_id in zip(corners, ids.flatten()):
            points = marker_corners.reshape(4, 2).astype(np.float64)
            homography = homography_from_corners(points)
            hamming = self._hamming_distance(image.pixels, points, int(tag_id))

            detections.append(
                RawDetection(
                    id=int(tag_id),
                    hamming=hamming,
                    good=hamming <= self.error_recovery_bits,
                    center=project_point(homography, 0.0, 0.0),
                    corners=tuple((float(x), float(y)) for x, y in points),
                    homography=homography,
                )
            )

        logger.debug(f"Engine decoded {len(detections)} {self.codes.family} tags")
        return detections

    def _read_bits(self, gray: np.ndarray, corners: np.ndarray) -> np.ndarray:
        cells = self.codes.bits_per_side + 2 * self.black_border
        side = cells * _CELL_PIXELS
        target = np.array(
            [[0, 0], [side, 0], [side, side], [0, side]], dtype=np.float32
        )
        transform = cv2.getPerspectiveTransform(corners.astype(np.float32), target)
        warped = cv2.warpPerspective(gray, transform, (side, side), flags=cv2.INTER_LINEAR)
        _, binary = cv2.threshold(warped, 0, 1, cv2.THRESH_BINARY | cv2.THRESH_OTSU)

        margin = _CELL_PIXELS // 4
        cell_view = binary.reshape(cells, _CELL_PIXELS, cells, _CELL_PIXELS)
        interior = cell_view[:, margin:-margin, :, margin:-margin]
        grid = (interior.mean(axis=(1, 3)) > 0.5).astype(np.uint8)

        border = self.black_border
        return grid[border:cells - border, border:cells - border]

    def _expected_bits(self, tag_id: int) -> np.ndarray:
        size = self.codes.bits_per_side + 2
        marker = aruco.generateImageMarker(self._dictionary, tag_id, size, borderBits=1)
        return (marker[1:-1, 1:-1] > 127).astype(np.uint8)

    def _hamming_distance(self, gray: np.ndarray, corners: np.ndarray, tag_id: int) -> int:
        observed = self._read_bits(gray, corners)
        return int(np.count_nonzero(observed != self._expected_bits(tag_id)))

    def close(self) -> None:
        self._detector = None
        self._dictionary = None
