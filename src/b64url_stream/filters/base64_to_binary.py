import logging
from typing import List, Optional, Tuple

from b64url_stream.utils.base64url import decode_from_base64url, is_url_safe, max_decoded_length, pad_count
from b64url_stream.utils.chunk import Chunk, ChunkPool
from b64url_stream.utils.constants import PAD_CHAR
from b64url_stream.utils.errors import ConsistencyError, DataFormatError, throw_if_failed

logger = logging.getLogger(__name__)


class Base64ToBinaryFilter:
    """
    Envelope in: str of URL-safe Base64 text (garbage already filtered)
    Envelope out: Chunk of decoded bytes, rented from `pool`

    Keeps up to 3 characters of an incomplete group between calls. Padding is
    never expected on input; it is rebuilt from the length of the final
    remainder when the stream ends.
    """
    stage_name = "b64decode"

    def __init__(self, pool: Optional[ChunkPool] = None):
        self.pool = pool if pool is not None else ChunkPool()
        self._carry = ""

    def decode(self, text: str, is_final: bool = False, dest_capacity: Optional[int] = None) -> Tuple[bytes, int]:
        """
        Decode the carried remainder followed by `text`.

        Returns the decoded bytes and how many characters (carry included)
        went into complete groups. Whatever is left is carried to the next
        call; a final call leaves nothing behind.
        """
        pending = self._carry + text
        if not is_final:
            status, data, consumed = decode_from_base64url(pending, is_final=False, dest_capacity=dest_capacity)
            throw_if_failed(status, "decode_from_base64url")
            self._carry = pending[consumed:]
            return data, consumed

        # '=' in the remainder came from the input, only the rebuilt pads may follow
        if not is_url_safe(pending):
            raise DataFormatError(f"invalid character in final group: {pending!r}")
        pads = pad_count(len(pending))
        if pads == 3:
            raise DataFormatError(f"dangling character at end of input: {pending[-1:]!r}")
        padded = pending + PAD_CHAR * pads
        status, data, consumed = decode_from_base64url(padded, is_final=True, dest_capacity=dest_capacity)
        throw_if_failed(status, "decode_from_base64url")
        if consumed < len(padded):
            raise ConsistencyError("Base64 decode of final block did not consume all characters")
        if pads:
            logger.debug("reconstructed %d pad character(s) for final group", pads)
        self._carry = ""
        return data, consumed

    def _decode_to_chunk(self, text: str, is_final: bool) -> List[Chunk]:
        # sized for the carry, the new text and the pads a final group may need
        chunk = self.pool.rent(max_decoded_length(len(self._carry) + len(text)))
        try:
            data, _ = self.decode(text, is_final, dest_capacity=chunk.capacity)
            chunk.write(data)
        except Exception:
            chunk.release()
            raise
        if not chunk.length:
            chunk.release()
            return []
        return [chunk]

    def process(self, text: str) -> List[Chunk]:
        return self._decode_to_chunk(text, is_final=False)

    def flush(self) -> List[Chunk]:
        return self._decode_to_chunk("", is_final=True)
