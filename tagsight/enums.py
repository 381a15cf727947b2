"""Enumeration types for type-safe constants throughout the package."""

from enum import Enum


class TagFamily(str, Enum):
    """AprilTag families known to the detector.

    Members are named after payload bits and minimum Hamming distance. Only
    the families whose codeword tables are available at start-up can be used
    to construct a detector, see :mod:`tagsight.families`.
    """

    TAG36H11 = "36h11"
    TAG36H9 = "36h9"
    TAG25H9 = "25h9"
    TAG25H7 = "25h7"
    TAG16H5 = "16h5"

    @classmethod
    def from_string(cls, value: str) -> "TagFamily":
        """
        Convert a string to TagFamily enum.

        Accepts both the bare identifier ("36h11") and the prefixed form
        ("tag36h11").

        Args:
            value: String representation of the tag family

        Returns:
            TagFamily enum value

        Raises:
            ValueError: If value doesn't match any known tag family
        """
        if isinstance(value, str):
            name = value[3:] if value.startswith("tag") else value
            for family in cls:
                if family.value == name:
                    return family
        raise ValueError(f"Unknown tag family: {value}")

    def __str__(self) -> str:
        """Return the string value of the enum."""
        return self.value


class ImageFormat(str, Enum):
    """Pixel layouts accepted by the image normalizer."""

    GRAYSCALE = "gray"
    RGB = "rgb"
    RGBA = "rgba"

    @property
    def channels(self) -> int:
        """Number of interleaved 8-bit channels per pixel."""
        return {"gray": 1, "rgb": 3, "rgba": 4}[self.value]

    def __str__(self) -> str:
        """Return the string value of the enum."""
        return self.value
