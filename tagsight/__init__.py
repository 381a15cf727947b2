"""
AprilTag detection for gray, RGB and RGBA pixel buffers.
"""

import logging
from typing import Any, List, Mapping, Optional

from tagsight.config import get_config
from tagsight.detector import AprilTagDetector, TagDetection, TagFamilyConfig
from tagsight.enums import ImageFormat, TagFamily
from tagsight.exceptions import (
    ConfigError,
    DetectError,
    DetectorClosedError,
    InvalidArgument,
    InvalidBorderWidth,
    InvalidBufferSize,
    TagEngineError,
    TagSightError,
    UnknownTagFamily,
)
from tagsight.families import FamilyRegistry, TagCodes, family_registry
from tagsight.image import CanonicalImage, infer_format, normalize

logging.getLogger(__name__).addHandler(logging.NullHandler())

TAG_FAMILIES = {
    "TAG_36H11": TagFamily.TAG36H11.value,
    "TAG_36H9": TagFamily.TAG36H9.value,
    "TAG_25H9": TagFamily.TAG25H9.value,
    "TAG_25H7": TagFamily.TAG25H7.value,
    "TAG_16H5": TagFamily.TAG16H5.value,
}


def available_families() -> List[str]:
    """Families whose codeword tables are available in this build."""
    return family_registry.available()


def create_detector(
    tag_family: Optional[str] = None, options: Optional[Mapping[str, Any]] = None
) -> AprilTagDetector:
    """
    Create an AprilTag detector for a specific tag family.

    Args:
        tag_family: One of the TAG_FAMILIES values (defaults to the configured
                    family, 36h11 unless TAGSIGHT_TAG_FAMILY says otherwise)
        options: Optional mapping, e.g. {"blackBorder": 2} for Kalibr AprilGrid

    Returns:
        Configured AprilTagDetector
    """
    settings = get_config()
    if tag_family is None:
        tag_family = settings.DEFAULT_TAG_FAMILY
    if options is None and settings.DEFAULT_BLACK_BORDER != 1:
        options = {"blackBorder": settings.DEFAULT_BLACK_BORDER}
    return AprilTagDetector(tag_family, options)


def detect(detector: AprilTagDetector, buffer, width, height) -> List[TagDetection]:
    """
    Detect AprilTags in an image buffer.

    Args:
        detector: Detector instance from create_detector
        buffer: Grayscale, RGB or RGBA image buffer
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        List of detected tags with id, center, corners, homography, etc.
    """
    return detector.detect(buffer, width, height)


__all__ = [
    "AprilTagDetector",
    "CanonicalImage",
    "ConfigError",
    "DetectError",
    "DetectorClosedError",
    "FamilyRegistry",
    "ImageFormat",
    "InvalidArgument",
    "InvalidBorderWidth",
    "InvalidBufferSize",
    "TAG_FAMILIES",
    "TagCodes",
    "TagDetection",
    "TagEngineError",
    "TagFamily",
    "TagFamilyConfig",
    "TagSightError",
    "UnknownTagFamily",
    "available_families",
    "create_detector",
    "detect",
    "family_registry",
    "infer_format",
    "normalize",
]
