import cv2.aruco as aruco
import pytest

from tagsight.detector import AprilTagDetector
from tagsight.enums import TagFamily
from tagsight.exceptions import UnknownTagFamily
from tagsight.families import (
    KNOWN_TAG_CODES,
    FamilyRegistry,
    TagCodes,
    build_registry,
    codeword_bits,
    family_registry,
    load_codeword_file,
)
from tagsight.synthetic import render_tag


def test_mandatory_family_always_available():
    assert "36h11" in family_registry
    assert build_registry(enabled=[]).available() == ["36h11"]


def test_resolve_accepts_prefixed_name():
    codes = family_registry.resolve("tag36h11")
    assert codes.family is TagFamily.TAG36H11
    assert codes.bits == 36
    assert codes.min_hamming == 11
    assert codes.bits_per_side == 6


@pytest.mark.parametrize("name", ["", "36H11", "36h10", "tag99h9", "apriltag", None, 36])
def test_resolve_rejects_unknown_names(name):
    with pytest.raises(UnknownTagFamily) as exc_info:
        family_registry.resolve(name)

    assert exc_info.value.family == name
    assert "36h11" in exc_info.value.available
    assert "36h11" in str(exc_info.value)


@pytest.mark.parametrize("name", ["36h9", "25h7"])
def test_families_without_codeword_table_are_absent(name):
    assert family_registry.is_available(name) is False
    with pytest.raises(UnknownTagFamily):
        family_registry.resolve(name)


def test_enabled_set_limits_optional_families():
    registry = build_registry(enabled=["16h5"])

    assert registry.available() == ["36h11", "16h5"]
    assert registry.is_available("tag16h5")
    assert not registry.is_available("25h9")


def test_enabled_set_ignores_unknown_names():
    registry = build_registry(enabled=["nonsense", "25h9"])
    assert registry.available() == ["36h11", "25h9"]


def test_available_follows_canonical_order():
    order = [family.value for family in TagFamily]
    available = family_registry.available()
    assert available == sorted(available, key=order.index)


def test_register_rejects_table_missing_from_build():
    registry = FamilyRegistry()
    with pytest.raises(LookupError):
        registry.register(TagCodes(TagFamily.TAG25H7, 25, 7))
    assert len(registry) == 0


def test_known_codes_cover_every_family():
    assert {codes.family for codes in KNOWN_TAG_CODES} == set(TagFamily)


def test_load_dictionary_matches_family_size():
    dictionary = family_registry.resolve("36h11").load_dictionary()
    assert dictionary.markerSize == 6


def test_tag_family_from_string():
    assert TagFamily.from_string("16h5") is TagFamily.TAG16H5
    assert TagFamily.from_string("tag25h9") is TagFamily.TAG25H9
    assert str(TagFamily.TAG36H11) == "36h11"
    with pytest.raises(ValueError):
        TagFamily.from_string("tag")


def codewords_from_dictionary(dictionary, count):
    """Reads the first codewords of a dictionary back from its rendered markers."""
    side = dictionary.markerSize
    codewords = []
    for tag_id in range(count):
        marker = aruco.generateImageMarker(dictionary, tag_id, side + 2, borderBits=1)
        value = 0
        for bit in (marker[1:-1, 1:-1] > 127).reshape(-1):
            value = (value << 1) | int(bit)
        codewords.append(value)
    return codewords


@pytest.fixture(scope="module")
def reference_codewords():
    """The first ten 36h11 codewords; their distance of 11 also satisfies 36h9."""
    dictionary = family_registry.resolve("36h11").load_dictionary()
    return codewords_from_dictionary(dictionary, 10)


def test_codeword_bits_layout():
    bits = codeword_bits(0b1000_0000_0000_0001, 4)
    assert bits.shape == (4, 4)
    assert bits[0, 0] == 1
    assert bits[3, 3] == 1
    assert bits.sum() == 2


def test_register_codewords_makes_family_available(reference_codewords):
    registry = build_registry(enabled=[])

    codes = registry.register_codewords("tag36h9", reference_codewords)

    assert codes.family is TagFamily.TAG36H9
    assert codes.is_provided
    assert registry.available() == ["36h11", "36h9"]
    dictionary = codes.load_dictionary()
    assert dictionary.markerSize == 6
    assert codewords_from_dictionary(dictionary, 10) == reference_codewords


def test_codeword_table_detects_rendered_tags(reference_codewords):
    registry = FamilyRegistry()
    registry.register_codewords("36h9", reference_codewords)
    rendered = render_tag("36h11", 3, cell_size=10)

    with AprilTagDetector("36h9", registry=registry) as detector:
        detections = detector.detect(rendered.image.tobytes(), rendered.width, rendered.height)

    assert [(det.id, det.hamming_distance) for det in detections] == [(3, 0)]
    assert detector.family == "36h9"


@pytest.mark.parametrize("codewords", [[], [1 << 25], [-1]])
def test_register_codewords_rejects_bad_tables(codewords):
    registry = FamilyRegistry()
    with pytest.raises(ValueError):
        registry.register_codewords("25h7", codewords)
    assert not registry.is_available("25h7")


def test_register_codewords_rejects_unknown_family():
    with pytest.raises(UnknownTagFamily):
        FamilyRegistry().register_codewords("41h12", [1, 2, 3])


def test_codeword_directory_supplies_missing_family(tmp_path, reference_codewords):
    lines = ["# first ten 36h11 codes"] + [f"{codeword:#x}," for codeword in reference_codewords]
    (tmp_path / "tag36h9.txt").write_text("\n".join(lines) + "\n")

    registry = build_registry(enabled=["36h9"], codeword_dir=str(tmp_path))

    assert registry.available() == ["36h11", "36h9"]
    assert registry.resolve("36h9").codewords == tuple(reference_codewords)
    assert load_codeword_file(str(tmp_path / "tag36h9.txt")) == tuple(reference_codewords)


def test_codeword_directory_without_file_changes_nothing(tmp_path):
    registry = build_registry(codeword_dir=str(tmp_path))
    assert not registry.is_available("36h9")
    assert not registry.is_available("25h7")
