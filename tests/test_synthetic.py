import numpy as np
import pytest

from tagsight.exceptions import UnknownTagFamily
from tagsight.synthetic import (
    render_grid,
    render_marker,
    render_tag,
    tag_side_pixels,
    to_rgb,
    to_rgba,
)


def test_tag_side_counts_border_cells():
    assert tag_side_pixels("36h11", black_border=1, cell_size=10) == 80
    assert tag_side_pixels("36h11", black_border=2, cell_size=10) == 100
    assert tag_side_pixels("16h5", black_border=1, cell_size=4) == 24


def test_marker_has_solid_border():
    marker = render_marker("36h11", 0, black_border=2, cell_size=5)
    assert marker.shape == (50, 50)
    assert not marker[:10, :].any()
    assert not marker[:, -10:].any()


def test_render_tag_places_marker_inside_quiet_zone():
    rendered = render_tag("36h11", 3, cell_size=10, margin=20)

    assert (rendered.width, rendered.height) == (120, 120)
    assert (rendered.image[:20, :] == 255).all()
    np.testing.assert_allclose(rendered.tags[0].corners[0], (19.5, 19.5))
    np.testing.assert_allclose(rendered.tags[0].corners[2], (99.5, 99.5))


def test_render_grid_assigns_consecutive_ids():
    board = render_grid("36h11", rows=2, cols=3, first_id=10)
    assert [tag.tag_id for tag in board.tags] == [10, 11, 12, 13, 14, 15]


def test_render_unknown_family():
    with pytest.raises(UnknownTagFamily):
        render_tag("36h9", 0)


def test_color_conversions_keep_luminance():
    gray = np.array([[0, 128, 255]], dtype=np.uint8)
    assert to_rgb(gray).shape == (1, 3, 3)
    assert to_rgba(gray).shape == (1, 3, 4)
    assert (to_rgba(gray)[..., 3] == 255).all()
