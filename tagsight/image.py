"""Conversion of caller pixel buffers into the detector's canonical image.

The pixel layout is never transmitted, so it is inferred from the buffer
length alone, in a fixed priority order: grayscale, then RGB, then RGBA.
"""

import logging
from dataclasses import dataclass

import cv2
import numpy as np

from .enums import ImageFormat
from .exceptions import InvalidBufferSize
from .validators import BufferLike

logger = logging.getLogger(__name__)

_COLOR_CONVERSIONS = {
    ImageFormat.RGB: cv2.COLOR_RGB2GRAY,
    ImageFormat.RGBA: cv2.COLOR_RGBA2GRAY,
}


@dataclass(frozen=True)
class CanonicalImage:
    """Owned single-channel 8-bit luminance image."""

    pixels: np.ndarray  # H x W, uint8, C-contiguous
    width: int
    height: int


def buffer_length(buffer: BufferLike) -> int:
    if isinstance(buffer, np.ndarray):
        return int(buffer.size)
    return memoryview(buffer).nbytes


def infer_format(length: int, width: int, height: int) -> ImageFormat:
    """
    Infer the pixel layout of a buffer from its length.

    Args:
        length: Buffer length in bytes
        width: Declared image width in pixels
        height: Declared image height in pixels

    Returns:
        The matching ImageFormat

    Raises:
        InvalidBufferSize: If the length matches none of the supported layouts
    """
    pixels = width * height
    for image_format in (ImageFormat.GRAYSCALE, ImageFormat.RGB, ImageFormat.RGBA):
        if length == pixels * image_format.channels:
            return image_format
    raise InvalidBufferSize(length, width, height)


def _as_bytes_array(buffer: BufferLike) -> np.ndarray:
    if isinstance(buffer, np.ndarray):
        return np.ascontiguousarray(buffer).reshape(-1)
    view = memoryview(buffer)
    if not view.c_contiguous:
        # strided views cannot be cast in place
        return np.frombuffer(view.tobytes(), dtype=np.uint8)
    return np.frombuffer(view.cast("B"), dtype=np.uint8)


def normalize(buffer: BufferLike, width: int, height: int) -> CanonicalImage:
    """
    Convert a gray, RGB or RGBA buffer into an owned luminance image.

    Color layouts are converted with the BT.601 luma weights used by
    cv2.cvtColor; the alpha channel of RGBA input is ignored. The source
    buffer is never modified and the result never shares its memory.

    Raises:
        InvalidBufferSize: If the buffer length does not fit width and height
    """
    image_format = infer_format(buffer_length(buffer), width, height)
    source = _as_bytes_array(buffer)

    if image_format is ImageFormat.GRAYSCALE:
        # copy: the caller may reuse or free its buffer
        pixels = source.reshape(height, width).copy()
    else:
        color = source.reshape(height, width, image_format.channels)
        pixels = cv2.cvtColor(color, _COLOR_CONVERSIONS[image_format])

    logger.debug(f"Normalized {width}x{height} {image_format} buffer")
    return CanonicalImage(pixels=np.ascontiguousarray(pixels), width=width, height=height)
