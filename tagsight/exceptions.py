"""Custom exception hierarchy for tag detection."""


class TagSightError(Exception):
    """Base exception for all tag detection errors."""
    pass


class ConfigError(TagSightError, ValueError):
    """Raised when a detector is constructed with an invalid configuration."""
    pass


class UnknownTagFamily(ConfigError):
    """Raised when the requested tag family has no codeword table in this build."""

    def __init__(self, family, available):
        self.family = family
        self.available = list(available)
        super().__init__(
            f"Unknown tag family {family!r}. Available families: {', '.join(self.available)}"
        )


class InvalidBorderWidth(ConfigError):
    """Raised when the blackBorder option is not a positive integer."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"blackBorder must be a positive integer, got {value!r}")


class DetectError(TagSightError):
    """Base exception for failures of a single detect call."""
    pass


class InvalidArgument(DetectError, TypeError):
    """Raised when detect() receives a missing or wrong-typed argument."""

    def __init__(self, argument: str, reason: str):
        self.argument = argument
        self.reason = reason
        super().__init__(f"Invalid argument '{argument}': {reason}")


class InvalidBufferSize(DetectError, ValueError):
    """Raised when the buffer length matches no supported pixel layout."""

    def __init__(self, length: int, width: int, height: int):
        self.length = length
        self.width = width
        self.height = height
        pixels = width * height
        self.expected = (pixels, pixels * 3, pixels * 4)
        super().__init__(
            f"Invalid buffer size {length} for {width}x{height} image; "
            f"expected {self.expected[0]} (gray), {self.expected[1]} (RGB) "
            f"or {self.expected[2]} (RGBA) bytes"
        )


class TagEngineError(DetectError):
    """Raised when the detection engine fails while processing a frame."""
    pass


class DetectorClosedError(DetectError):
    """Raised when detect() is called after the detector was closed."""
    pass
