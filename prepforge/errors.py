"""Errors raised by the PrepForge core."""


class DecodeError(RuntimeError):
    """Raised when ffmpeg cannot turn an input file into samples or pixels."""


class InvalidRange(ValueError):
    """Raised when time bounds passed to the core are nonsensical."""


class EncodeFailure(RuntimeError):
    """Raised when a WAV or still image cannot be produced."""


class ProbeCancelled(RuntimeError):
    pass
