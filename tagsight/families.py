"""Registry of tag family codeword tables.

Codeword tables come from OpenCV's predefined AprilTag dictionaries, or from
AprilTag-style integer codewords for families OpenCV does not ship. Which
optional families exist depends on the OpenCV build, on the codeword files
found and on the configured enabled set; lookups for anything absent fail
uniformly with :class:`~tagsight.exceptions.UnknownTagFamily`.
"""

import logging
import math
import os
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

import cv2.aruco as aruco
import numpy as np

from .config import get_config
from .enums import TagFamily
from .exceptions import UnknownTagFamily

logger = logging.getLogger(__name__)

MANDATORY_FAMILY = TagFamily.TAG36H11


def codeword_bits(codeword: int, side: int) -> np.ndarray:
    """
    Unpack an integer codeword into a side x side bit matrix.

    The most significant bit is the top-left cell, then row-major; set bits
    are white cells.
    """
    total = side * side
    bits = [(codeword >> shift) & 1 for shift in range(total - 1, -1, -1)]
    return np.array(bits, dtype=np.uint8).reshape(side, side)


def dictionary_from_codewords(
    codewords: Tuple[int, ...], side: int, max_correction_bits: int
) -> "aruco.Dictionary":
    byte_lists = [
        aruco.Dictionary.getByteListFromBits(codeword_bits(codeword, side))
        for codeword in codewords
    ]
    return aruco.Dictionary(np.vstack(byte_lists), side, max_correction_bits)


def load_codeword_file(path: str) -> Tuple[int, ...]:
    """Read one codeword per line (hex or decimal); blank lines and # comments are skipped."""
    codewords = []
    with open(path) as f:
        for line in f:
            token = line.split('#', 1)[0].strip().rstrip(',')
            if token:
                codewords.append(int(token, 0))
    return tuple(codewords)


@dataclass(frozen=True)
class TagCodes:
    """Codeword table for one tag family."""

    family: TagFamily
    bits: int
    min_hamming: int
    dictionary_name: Optional[str] = None
    codewords: Optional[Tuple[int, ...]] = None

    @property
    def bits_per_side(self) -> int:
        return int(math.isqrt(self.bits))

    @property
    def is_provided(self) -> bool:
        """Whether codewords are at hand, either explicitly or from the OpenCV build."""
        if self.codewords:
            return True
        return self.dictionary_name is not None and hasattr(aruco, self.dictionary_name)

    def with_codewords(self, codewords: Iterable[int]) -> "TagCodes":
        """
        Copy of this table backed by explicit codewords.

        Raises:
            ValueError: If the list is empty or a codeword does not fit the payload
        """
        codewords = tuple(int(c) for c in codewords)
        if not codewords:
            raise ValueError(f"No codewords given for {self.family}")
        limit = 1 << self.bits
        for codeword in codewords:
            if not 0 <= codeword < limit:
                raise ValueError(
                    f"Codeword {codeword:#x} does not fit the {self.bits}-bit {self.family} payload"
                )
        return replace(self, codewords=codewords)

    def load_dictionary(self) -> "aruco.Dictionary":
        if not self.is_provided:
            raise LookupError(f"No codeword table available for {self.family}")
        if self.codewords:
            return dictionary_from_codewords(
                self.codewords, self.bits_per_side, (self.min_hamming - 1) // 2
            )
        return aruco.getPredefinedDictionary(getattr(aruco, self.dictionary_name))


# 36h9 and 25h7 have no OpenCV dictionary; they need explicit codewords.
KNOWN_TAG_CODES = (
    TagCodes(TagFamily.TAG36H11, 36, 11, "DICT_APRILTAG_36h11"),
    TagCodes(TagFamily.TAG36H9, 36, 9),
    TagCodes(TagFamily.TAG25H9, 25, 9, "DICT_APRILTAG_25h9"),
    TagCodes(TagFamily.TAG25H7, 25, 7),
    TagCodes(TagFamily.TAG16H5, 16, 5, "DICT_APRILTAG_16h5"),
)


class FamilyRegistry:
    """Mapping from family name to the codeword tables available at runtime."""

    def __init__(self):
        self._codes: Dict[TagFamily, TagCodes] = {}

    def register(self, codes: TagCodes) -> None:
        """
        Register a codeword table.

        Args:
            codes: The table to make available under its family name

        Raises:
            LookupError: If the table has no backing dictionary in this build
        """
        if not codes.is_provided:
            raise LookupError(f"No codeword table available for {codes.family}")
        self._codes[codes.family] = codes
        logger.debug(f"Registered tag family {codes.family}")

    def register_codewords(self, name, codewords: Iterable[int]) -> TagCodes:
        """
        Register a family from explicit AprilTag-style integer codewords.

        Args:
            name: Family identifier, with or without the "tag" prefix
            codewords: Codewords in id order (see codeword_bits for the layout)

        Returns:
            The registered TagCodes

        Raises:
            UnknownTagFamily: If the name is not a known family
            ValueError: If the codewords are empty or do not fit the payload
        """
        try:
            family = TagFamily.from_string(name)
        except ValueError:
            raise UnknownTagFamily(name, self.available()) from None

        known = next(codes for codes in KNOWN_TAG_CODES if codes.family is family)
        codes = known.with_codewords(codewords)
        self.register(codes)
        logger.info(f"Registered {len(codes.codewords)} codewords for tag family {family}")
        return codes

    def resolve(self, name) -> TagCodes:
        """
        Look up the codeword table for a family name.

        Args:
            name: Family identifier, with or without the "tag" prefix

        Returns:
            The registered TagCodes

        Raises:
            UnknownTagFamily: If the name is unknown or not available in this build
        """
        try:
            family = TagFamily.from_string(name)
        except ValueError:
            raise UnknownTagFamily(name, self.available()) from None

        codes = self._codes.get(family)
        if codes is None:
            raise UnknownTagFamily(name, self.available())
        return codes

    def is_available(self, name) -> bool:
        try:
            self.resolve(name)
        except UnknownTagFamily:
            return False
        return True

    def available(self) -> List[str]:
        return [family.value for family in TagFamily if family in self._codes]

    def __contains__(self, name) -> bool:
        return self.is_available(name)

    def __len__(self) -> int:
        return len(self._codes)


def build_registry(
    enabled: Optional[Iterable[str]] = None, codeword_dir: Optional[str] = None
) -> FamilyRegistry:
    """
    Build a registry from the known tables.

    Args:
        enabled: Optional family names to include besides the mandatory
                 36h11 table. None includes every table the build provides.
        codeword_dir: Directory searched for tag<family>.txt codeword files,
                      used for families the OpenCV build does not provide

    Returns:
        A populated FamilyRegistry
    """
    wanted = None
    if enabled is not None:
        wanted = set()
        for name in enabled:
            try:
                wanted.add(TagFamily.from_string(name))
            except ValueError:
                logger.warning(f"Ignoring unknown tag family in enabled set: {name}")

    registry = FamilyRegistry()
    for codes in KNOWN_TAG_CODES:
        mandatory = codes.family is MANDATORY_FAMILY
        if not mandatory and wanted is not None and codes.family not in wanted:
            continue
        if not codes.is_provided and codeword_dir:
            path = os.path.join(codeword_dir, f"tag{codes.family}.txt")
            if os.path.isfile(path):
                codes = codes.with_codewords(load_codeword_file(path))
        if not codes.is_provided:
            if mandatory:
                raise RuntimeError(
                    f"OpenCV build does not provide the {codes.family} dictionary"
                )
            logger.debug(f"Tag family {codes.family} is not available in this build")
            continue
        registry.register(codes)

    return registry


_settings = get_config()
family_registry = build_registry(_settings.ENABLED_FAMILIES, _settings.CODEWORD_DIR)
