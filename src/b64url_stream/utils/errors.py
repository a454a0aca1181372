from enum import Enum


class OperationStatus(Enum):
    """Result of a low-level codec call."""
    DONE = "done"
    DESTINATION_TOO_SMALL = "destination_too_small"
    NEED_MORE_DATA = "need_more_data"
    INVALID_DATA = "invalid_data"


class TranscodeError(Exception):
    """Base class for every error raised by the transcoding pipeline."""


class DataFormatError(TranscodeError, ValueError):
    """Input text is not valid URL-safe Base64 (after garbage filtering)."""


class CapacityError(TranscodeError):
    """A destination buffer sized by the max-length formula was too small. Always a bug."""


class ConsistencyError(TranscodeError):
    """A final-block codec call did not consume its whole input. Always a bug."""


class CancellationError(TranscodeError):
    """Cooperative cancellation was observed while the pipeline was running."""


def throw_if_failed(status: OperationStatus, operation: str) -> None:
    """
    Map a codec status to the error taxonomy.

    DONE is silent; DESTINATION_TOO_SMALL is an internal capacity bug;
    INVALID_DATA and NEED_MORE_DATA mean the caller handed us bad text.
    """
    if status is OperationStatus.DONE:
        return
    if status is OperationStatus.INVALID_DATA or status is OperationStatus.NEED_MORE_DATA:
        raise DataFormatError(f"{operation} -> {status.name}")
    raise CapacityError(f"{operation} -> {status.name}")
