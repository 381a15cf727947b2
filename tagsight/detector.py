"""AprilTag detection service.

A detector is configured once with a tag family and a black border width and
then detects tags in any number of frames. The configuration never changes
for the lifetime of the detector; use a new detector for a different family.

Detectors are not reentrant: concurrent detect() calls on the same instance
must be serialized by the caller. Separate instances share no mutable state.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

import cv2

from .config import get_config
from .engine import ArucoTagEngine, Point, RawDetection, TagEngine
from .enums import TagFamily
from .exceptions import DetectorClosedError, TagEngineError
from .families import FamilyRegistry, family_registry
from .image import normalize
from .validators import resolve_black_border, validate_detect_arguments

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagFamilyConfig:
    name: TagFamily
    black_border: int = 1


@dataclass(frozen=True)
class TagDetection:
    """A detected tag, with geometry in image pixel coordinates."""

    id: int
    hamming_distance: int  # 0 = exact codeword match
    good: bool
    center: Point
    corners: Tuple[Point, Point, Point, Point]
    homography: Tuple[float, ...]  # 3x3, row-major

    @classmethod
    def from_raw(cls, raw: RawDetection) -> "TagDetection":
        return cls(
            id=int(raw.id),
            hamming_distance=int(raw.hamming),
            good=bool(raw.good),
            center=(float(raw.center[0]), float(raw.center[1])),
            corners=tuple((float(x), float(y)) for x, y in raw.corners),
            homography=tuple(
                float(raw.homography[row][col]) for row in range(3) for col in range(3)
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "hammingDistance": self.hamming_distance,
            "good": self.good,
            "center": list(self.center),
            "corners": [list(corner) for corner in self.corners],
            "homography": list(self.homography),
        }


class AprilTagDetector:
    """Detects AprilTags of one family in gray, RGB or RGBA pixel buffers."""

    def __init__(
        self,
        tag_family: str = TagFamily.TAG36H11.value,
        options: Optional[Mapping[str, Any]] = None,
        registry: Optional[FamilyRegistry] = None,
    ):
        """
        Configure the detector.

        Args:
            tag_family: Family identifier such as "36h11" (a "tag" prefix is accepted)
            options: Optional mapping; the only recognized key is "blackBorder",
                     the solid border width in bits (use 2 for Kalibr AprilGrid)
            registry: Family registry to resolve against (defaults to the
                      process-wide registry)

        Raises:
            UnknownTagFamily: If the family is not available in this build
            InvalidBorderWidth: If blackBorder is not a positive integer
            ConfigError: If options contains anything else
        """
        registry = registry if registry is not None else family_registry
        codes = registry.resolve(tag_family)
        black_border = resolve_black_border(options)

        settings = get_config()
        self._config = TagFamilyConfig(name=codes.family, black_border=black_border)
        self._engine: Optional[TagEngine] = ArucoTagEngine(
            codes,
            black_border=black_border,
            error_recovery_bits=settings.ERROR_RECOVERY_BITS,
            corner_refinement=settings.CORNER_REFINEMENT,
        )

        logger.info(
            f"AprilTag detector configured family={codes.family} black_border={black_border}"
        )

    @property
    def config(self) -> TagFamilyConfig:
        return self._config

    @property
    def family(self) -> str:
        return self._config.name.value

    @property
    def black_border(self) -> int:
        return self._config.black_border

    @property
    def closed(self) -> bool:
        return self._engine is None

    def detect(self, buffer, width, height) -> List[TagDetection]:
        """
        Detect tags in a pixel buffer.

        Args:
            buffer: Gray, RGB or RGBA bytes (layout inferred from the length)
            width: Image width in pixels
            height: Image height in pixels

        Returns:
            Detected tags in engine order; empty when no tag is recognized

        Raises:
            InvalidArgument: If an argument is missing or has the wrong type
            InvalidBufferSize: If the buffer length does not fit the dimensions
            TagEngineError: If the engine fails on this frame
            DetectorClosedError: If the detector was closed
        """
        if self._engine is None:
            raise DetectorClosedError("detect() called on a closed detector")

        buffer, width, height = validate_detect_arguments(buffer, width, height)
        image = normalize(buffer, width, height)

        try:
            raw_detections = self._engine.extract_tags(image)
        except cv2.error as e:
            logger.error(f"Tag engine failed on {width}x{height} frame: {e}")
            raise TagEngineError(f"Tag engine failed: {e}") from e

        logger.debug(f"Detected {len(raw_detections)} tags in {width}x{height} frame")
        return [TagDetection.from_raw(raw) for raw in raw_detections]

    def close(self) -> None:
        """Release the engine. Further close() calls do nothing."""
        if self._engine is None:
            return
        engine, self._engine = self._engine, None
        engine.close()
        logger.debug(f"AprilTag detector for family {self.family} closed")

    def __enter__(self) -> "AprilTagDetector":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"AprilTagDetector(family={self.family!r}, "
            f"black_border={self.black_border}, closed={self.closed})"
        )
