"""Error taxonomy for the placeholder benchmark.

None of these are fatal to the process: each one is scoped to a single
instance (``DecodeError``) or a single request (everything else).
"""


class PlaceholderBenchError(Exception):
    pass


class DecodeError(PlaceholderBenchError, ValueError):
    """The encoded placeholder could not be turned into pixels or a URI."""

    def __init__(self, placeholder: str, reason: str):
        self.placeholder = placeholder
        self.reason = reason
        preview = placeholder if len(placeholder) <= 32 else placeholder[:29] + "..."
        super().__init__(f"Cannot decode placeholder {preview!r}: {reason}")


class InsufficientDataError(PlaceholderBenchError):
    """A comparison was requested with a run that produced no samples."""


class ConcurrentRunError(PlaceholderBenchError):
    """A run was requested while another one is still active."""


class CatalogError(PlaceholderBenchError, ValueError):
    pass
