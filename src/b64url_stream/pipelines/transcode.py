"""
Ready-made encode and decode pipelines.

Encode: bytes source -> BinaryToBase64Filter -> LineWrapFilter (wrap > 0) -> text sink
Decode: text source -> GarbageFilter -> Base64ToBinaryFilter -> bytes sink

The streams are opened, and their charset chosen, by the caller.
"""

import io
from typing import Optional

from b64url_stream.filters.base64_to_binary import Base64ToBinaryFilter
from b64url_stream.filters.binary_to_base64 import BinaryToBase64Filter
from b64url_stream.filters.garbage_filter import GarbageFilter
from b64url_stream.filters.line_wrap import LineWrapFilter
from b64url_stream.filters.output_filter import BinaryOutputFilter, TextOutputFilter
from b64url_stream.pipelines.coordinator import PipelineCoordinator
from b64url_stream.utils.channel import CancelToken
from b64url_stream.utils.chunk import ChunkPool
from b64url_stream.utils.chunk_loader import ByteChunkLoader, TextChunkLoader
from b64url_stream.utils.constants import DEFAULT_BUFFER_SIZE, DEFAULT_QUEUE_SIZE


def build_encoder(source, sink, wrap: int = 0, buffer_size: int = DEFAULT_BUFFER_SIZE,
                  queue_size: int = DEFAULT_QUEUE_SIZE, cancel: Optional[CancelToken] = None,
                  pool: Optional[ChunkPool] = None) -> PipelineCoordinator:
    pool = pool if pool is not None else ChunkPool()
    stages = [BinaryToBase64Filter()]
    if wrap:
        stages.append(LineWrapFilter(wrap))
    stages.append(TextOutputFilter(sink))
    return PipelineCoordinator(ByteChunkLoader(source, pool, buffer_size), stages,
                               queue_size=queue_size, cancel=cancel, pool=pool, name="encode")


def build_decoder(source, sink, ignore_garbage: bool = False, buffer_size: int = DEFAULT_BUFFER_SIZE,
                  queue_size: int = DEFAULT_QUEUE_SIZE, cancel: Optional[CancelToken] = None,
                  pool: Optional[ChunkPool] = None) -> PipelineCoordinator:
    pool = pool if pool is not None else ChunkPool()
    stages = [
        GarbageFilter(ignore_garbage),
        Base64ToBinaryFilter(pool),
        BinaryOutputFilter(sink),
    ]
    return PipelineCoordinator(TextChunkLoader(source, buffer_size), stages,
                               queue_size=queue_size, cancel=cancel, pool=pool, name="decode")


def encode_stream(source, sink, wrap: int = 0, **kwargs) -> PipelineCoordinator:
    """Encode binary `source` into text `sink`. Returns the finished pipeline (for metrics)."""
    return build_encoder(source, sink, wrap=wrap, **kwargs).run()


def decode_stream(source, sink, ignore_garbage: bool = False, **kwargs) -> PipelineCoordinator:
    """Decode text `source` into binary `sink`. Returns the finished pipeline (for metrics)."""
    return build_decoder(source, sink, ignore_garbage=ignore_garbage, **kwargs).run()


def encode_bytes(data: bytes, wrap: int = 0, buffer_size: int = DEFAULT_BUFFER_SIZE) -> str:
    out = io.StringIO()
    encode_stream(io.BytesIO(data), out, wrap=wrap, buffer_size=buffer_size)
    return out.getvalue()


def decode_text(text: str, ignore_garbage: bool = False, buffer_size: int = DEFAULT_BUFFER_SIZE) -> bytes:
    out = io.BytesIO()
    decode_stream(io.StringIO(text), out, ignore_garbage=ignore_garbage, buffer_size=buffer_size)
    return out.getvalue()
