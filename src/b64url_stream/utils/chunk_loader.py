# src/b64url_stream/utils/chunk_loader.py
# Nhiệm vụ: đọc input stream theo từng khối buffer_size, bơm từng chunk vào pipeline.
# Khi hết dữ liệu: generator kết thúc, pipeline gửi SENTINEL cho stage tiếp theo.

from typing import Iterator, Optional

from b64url_stream.utils.chunk import Chunk, ChunkPool
from b64url_stream.utils.constants import DEFAULT_BUFFER_SIZE


class ByteChunkLoader:
    """
    Source: reads a binary stream into pooled chunks of at most `buffer_size` bytes.
    """
    stage_name = "read-bytes"

    def __init__(self, stream, pool: Optional[ChunkPool] = None, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size <= 0:
            raise ValueError(f"buffer_size must be > 0, got {buffer_size}")
        self.stream = stream
        self.pool = pool if pool is not None else ChunkPool()
        self.buffer_size = int(buffer_size)

    def _fill(self, chunk: Chunk) -> int:
        readinto = getattr(self.stream, "readinto", None)
        if readinto is None:
            return chunk.write(self.stream.read(self.buffer_size))
        with memoryview(chunk.buffer)[:self.buffer_size] as view:
            n = readinto(view) or 0
        chunk.length = n
        return n

    def produce(self) -> Iterator[Chunk]:
        while True:
            chunk = self.pool.rent(self.buffer_size)
            try:
                n = self._fill(chunk)
            except BaseException:
                chunk.release()
                raise
            if not n:
                chunk.release()
                return
            yield chunk


class TextChunkLoader:
    """
    Source: reads a text stream (charset decoding already done by the stream)
    in pieces of at most `buffer_size` characters.
    """
    stage_name = "read-text"

    def __init__(self, stream, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size <= 0:
            raise ValueError(f"buffer_size must be > 0, got {buffer_size}")
        self.stream = stream
        self.buffer_size = int(buffer_size)

    def produce(self) -> Iterator[str]:
        while True:
            text = self.stream.read(self.buffer_size)
            if not text:
                return
            yield text
