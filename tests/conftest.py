import os

os.environ.setdefault("TAGSIGHT_ENV", "testing")

import pytest

from tagsight import AprilTagDetector
from tagsight.synthetic import render_grid, render_tag


@pytest.fixture
def detector():
    """A 36h11 detector with the default single-bit border."""
    with AprilTagDetector("36h11") as instance:
        yield instance


@pytest.fixture(scope="module")
def single_tag():
    """One 36h11 tag (id 7) on a white canvas."""
    return render_tag("36h11", 7, black_border=1, cell_size=10)


@pytest.fixture(scope="module")
def tag_board():
    """A 2x3 board of 36h11 tags with ids 0-5."""
    return render_grid("36h11", rows=2, cols=3, black_border=1, cell_size=8)


@pytest.fixture(scope="module")
def aprilgrid_board():
    """A 6x6 board of double-border 36h11 tags (ids 0-35), as on Kalibr AprilGrid targets."""
    return render_grid("36h11", rows=6, cols=6, black_border=2, cell_size=8)
