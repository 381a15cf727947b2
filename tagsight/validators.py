"""
Detector option and argument validators.

Construction options are checked against a small schema so a malformed
configuration fails at construction time. detect() arguments are checked
structurally before any image work is attempted.
"""

import math
from dataclasses import dataclass
from numbers import Integral, Real
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import numpy as np

from .exceptions import ConfigError, InvalidArgument, InvalidBorderWidth

BufferLike = Union[bytes, bytearray, memoryview, np.ndarray]


@dataclass
class ValidationResult:
    """Result of a detector option validation."""

    is_valid: bool
    error_message: Optional[str] = None
    field: Optional[str] = None

    @classmethod
    def success(cls) -> "ValidationResult":
        """Create a successful validation result."""
        return cls(is_valid=True)

    @classmethod
    def failure(cls, error_message: str, field: Optional[str] = None) -> "ValidationResult":
        """Create a failed validation result with an error message."""
        return cls(is_valid=False, error_message=error_message, field=field)


DETECTOR_OPTIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "blackBorder": {
            "type": "integer",
            "minimum": 1,
            "description": "Solid border width in bits (2 for Kalibr AprilGrid targets)",
        },
    },
    "additionalProperties": False,
}


class ValidationError(Exception):
    """Raised when option validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_type(value: Any, expected_type: str, path: str = "") -> None:
    """Validates that a value matches the expected JSON schema type."""
    type_map = {
        "integer": Integral,
    }

    if expected_type not in type_map:
        raise ValidationError(f"Unknown type '{expected_type}' in schema", path)

    # bool is an int subclass but never a valid count
    if isinstance(value, bool):
        raise ValidationError(
            f"Invalid type at '{path}': expected {expected_type}, got bool", path
        )

    if not isinstance(value, type_map[expected_type]):
        raise ValidationError(
            f"Invalid type at '{path}': expected {expected_type}, got {type(value).__name__}",
            path,
        )


def validate_number_constraints(value: int, constraints: Dict, path: str) -> None:
    """Validates number-specific constraints."""
    if "minimum" in constraints and value < constraints["minimum"]:
        raise ValidationError(
            f"Value too small at '{path}': {value} < {constraints['minimum']}", path
        )


def validate_value(value: Any, property_schema: Dict, path: str) -> None:
    """Validates a single value against its schema definition."""
    expected_type = property_schema.get("type")
    if expected_type:
        validate_type(value, expected_type, path)
        if expected_type == "integer":
            validate_number_constraints(value, property_schema, path)


def validate_detector_options(options: Any) -> ValidationResult:
    """
    Validates detector construction options against the options schema.

    Args:
        options: Mapping of option names to values, or None

    Returns:
        ValidationResult with is_valid, an optional error_message and the
        offending field
    """
    if options is None:
        return ValidationResult.success()

    schema = DETECTOR_OPTIONS_SCHEMA
    if not isinstance(options, Mapping):
        return ValidationResult.failure(
            f"Options must be a mapping, got {type(options).__name__}", "options"
        )

    try:
        for key, value in options.items():
            if key in schema["properties"]:
                validate_value(value, schema["properties"][key], key)
            elif not schema.get("additionalProperties", False):
                return ValidationResult.failure(
                    f"Unknown option '{key}' not allowed for detector", key
                )
        return ValidationResult.success()
    except ValidationError as e:
        return ValidationResult.failure(str(e), e.field)


def resolve_black_border(options: Optional[Mapping[str, Any]], default: int = 1) -> int:
    """
    Return the border width requested by options, raising on invalid input.

    Raises:
        InvalidBorderWidth: If blackBorder is present but not a positive integer
        ConfigError: For any other invalid option
    """
    result = validate_detector_options(options)
    if not result.is_valid:
        if result.field == "blackBorder":
            raise InvalidBorderWidth(options["blackBorder"])
        raise ConfigError(result.error_message)

    if options and "blackBorder" in options:
        return int(options["blackBorder"])
    return default


def _check_dimension(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidArgument(name, f"expected a number, got {type(value).__name__}")
    if not math.isfinite(value) or int(value) != value:
        raise InvalidArgument(name, f"expected a whole number of pixels, got {value}")
    if value <= 0:
        raise InvalidArgument(name, f"must be positive, got {value}")
    return int(value)


def validate_detect_arguments(
    buffer: Any, width: Any, height: Any
) -> Tuple[BufferLike, int, int]:
    """
    Structurally validate the arguments of a detect call.

    Returns:
        The buffer together with width and height coerced to int

    Raises:
        InvalidArgument: Naming the offending argument and why
    """
    if buffer is None:
        raise InvalidArgument("buffer", "expected image buffer")
    if isinstance(buffer, np.ndarray):
        if buffer.dtype != np.uint8:
            raise InvalidArgument("buffer", f"expected uint8 array, got {buffer.dtype}")
    elif not isinstance(buffer, (bytes, bytearray, memoryview)):
        raise InvalidArgument(
            "buffer", f"image must be a bytes-like object, got {type(buffer).__name__}"
        )

    return buffer, _check_dimension("width", width), _check_dimension("height", height)
