from typing import List, Tuple

from b64url_stream.utils.base64url import encode_to_base64, make_url_safe
from b64url_stream.utils.chunk import Chunk
from b64url_stream.utils.errors import ConsistencyError, throw_if_failed


class BinaryToBase64Filter:
    """
    Envelope in: Chunk of raw bytes
    Envelope out: str of URL-safe Base64 text, never padded

    Whole 3-byte groups are encoded as they arrive; the 0-2 leftover bytes are
    carried into the next chunk and flushed (unpadded) at end of stream.
    """
    stage_name = "b64encode"

    def __init__(self):
        self._carry = bytearray()

    def encode(self, data, is_final: bool = False) -> Tuple[str, int]:
        status, encoded, consumed = encode_to_base64(data, is_final)
        throw_if_failed(status, "encode_to_base64")
        if is_final and consumed < len(data):
            raise ConsistencyError("Base64 encode of final block did not consume all bytes")
        return make_url_safe(encoded), consumed

    def process(self, chunk: Chunk) -> List[str]:
        with chunk:
            data = self._carry + chunk.buffer[:chunk.length]
        text, consumed = self.encode(data, is_final=False)
        self._carry = data[consumed:]
        return [text] if text else []

    def flush(self) -> List[str]:
        text, _ = self.encode(self._carry, is_final=True)
        self._carry = bytearray()
        return [text] if text else []
