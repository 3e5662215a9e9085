class AsarError(Exception):
    """Base class for asarkit-specific errors."""


# Header decoding
class MalformedHeaderError(AsarError, ValueError):
    pass


class InvalidOffsetError(AsarError, ValueError):
    pass


class HeaderSizeError(AsarError):
    pass


# Reading
class TruncatedArchiveError(AsarError, EOFError):
    pass


class StreamBusyError(AsarError):
    """Raised when a second file stream is requested while one is still live."""
