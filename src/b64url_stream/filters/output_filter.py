from typing import List

from b64url_stream.utils.chunk import Chunk


class BinaryOutputFilter:
    """
    Sink: writes decoded chunks to a binary stream and returns them to their pool.
    process(chunk) -> [] ; flush() flushes the stream.
    """
    stage_name = "write-bytes"

    def __init__(self, stream):
        self.stream = stream
        self.written = 0

    def process(self, chunk: Chunk) -> List:
        with chunk:
            with memoryview(chunk.buffer)[:chunk.length] as view:
                self.stream.write(view)
            self.written += chunk.length
        return []

    def flush(self) -> List:
        self.stream.flush()
        return []


class TextOutputFilter:
    """
    Sink: writes encoded text to a text stream (charset encoding is the stream's job).
    """
    stage_name = "write-text"

    def __init__(self, stream):
        self.stream = stream
        self.written = 0

    def process(self, text: str) -> List:
        self.stream.write(text)
        self.written += len(text)
        return []

    def flush(self) -> List:
        self.stream.flush()
        return []
