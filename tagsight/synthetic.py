"""
Synthetic tag images.

Renders single tags and calibration-grid style boards with a chosen border
width, together with the exact outer corners of every rendered tag.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import cv2.aruco as aruco
import numpy as np

from .families import family_registry

WHITE = 255


@dataclass
class RenderedTag:
    """Ground truth for one rendered tag."""

    tag_id: int
    corners: np.ndarray  # 4 x 2, top-left then clockwise, pixel-center coordinates


@dataclass
class SyntheticImage:
    """Grayscale image with the tags rendered into it."""

    image: np.ndarray  # H x W, uint8
    tags: List[RenderedTag] = field(default_factory=list)

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def width(self) -> int:
        return int(self.image.shape[1])


def tag_side_pixels(family: str, black_border: int = 1, cell_size: int = 10) -> int:
    codes = family_registry.resolve(family)
    return (codes.bits_per_side + 2 * black_border) * cell_size


def render_marker(
    family: str, tag_id: int, black_border: int = 1, cell_size: int = 10
) -> np.ndarray:
    """Render a bare marker (no quiet zone) with crisp, equally sized cells."""
    dictionary = family_registry.resolve(family).load_dictionary()
    side = tag_side_pixels(family, black_border, cell_size)
    return aruco.generateImageMarker(dictionary, tag_id, side, borderBits=black_border)


def _outer_corners(x0: int, y0: int, side: int) -> np.ndarray:
    # pixel centers sit on integer coordinates, so edges are offset by half a pixel
    left, top = x0 - 0.5, y0 - 0.5
    right, bottom = x0 + side - 0.5, y0 + side - 0.5
    return np.array(
        [[left, top], [right, top], [right, bottom], [left, bottom]], dtype=np.float64
    )


def render_tag(
    family: str,
    tag_id: int,
    black_border: int = 1,
    cell_size: int = 10,
    margin: Optional[int] = None,
) -> SyntheticImage:
    """
    Render one tag centered on a white canvas.

    Args:
        family: Tag family identifier
        tag_id: Codeword index to render
        black_border: Solid border width in bits
        cell_size: Pixels per bit cell
        margin: White quiet zone in pixels (defaults to three cells)
    """
    margin = 3 * cell_size if margin is None else margin
    marker = render_marker(family, tag_id, black_border, cell_size)
    side = marker.shape[0]

    canvas = np.full((side + 2 * margin, side + 2 * margin), WHITE, dtype=np.uint8)
    canvas[margin:margin + side, margin:margin + side] = marker
    return SyntheticImage(canvas, [RenderedTag(tag_id, _outer_corners(margin, margin, side))])


def render_grid(
    family: str,
    rows: int,
    cols: int,
    black_border: int = 1,
    cell_size: int = 10,
    spacing: Optional[int] = None,
    first_id: int = 0,
) -> SyntheticImage:
    """
    Render a board of tags with consecutive ids, row by row.

    Use black_border=2 to mimic Kalibr AprilGrid targets.
    """
    spacing = 3 * cell_size if spacing is None else spacing
    side = tag_side_pixels(family, black_border, cell_size)
    height = rows * side + (rows + 1) * spacing
    width = cols * side + (cols + 1) * spacing

    canvas = np.full((height, width), WHITE, dtype=np.uint8)
    tags: List[RenderedTag] = []
    tag_id = first_id
    for row in range(rows):
        for col in range(cols):
            x0 = spacing + col * (side + spacing)
            y0 = spacing + row * (side + spacing)
            canvas[y0:y0 + side, x0:x0 + side] = render_marker(
                family, tag_id, black_border, cell_size
            )
            tags.append(RenderedTag(tag_id, _outer_corners(x0, y0, side)))
            tag_id += 1

    return SyntheticImage(canvas, tags)


def to_rgb(gray: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)


def to_rgba(gray: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2RGBA)
