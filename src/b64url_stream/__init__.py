"""Streaming URL-safe Base64 (RFC 4648 §5) encoder/decoder."""

from b64url_stream.pipelines.transcode import (
    build_decoder,
    build_encoder,
    decode_stream,
    decode_text,
    encode_bytes,
    encode_stream,
)
from b64url_stream.utils.errors import (
    CancellationError,
    CapacityError,
    ConsistencyError,
    DataFormatError,
    TranscodeError,
)

__version__ = "1.0.0"

__all__ = [
    "build_decoder",
    "build_encoder",
    "decode_stream",
    "decode_text",
    "encode_bytes",
    "encode_stream",
    "CancellationError",
    "CapacityError",
    "ConsistencyError",
    "DataFormatError",
    "TranscodeError",
]
