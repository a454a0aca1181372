"""
Low-level block codec for URL-safe Base64.

These functions are stateless: they never raise for bad data, they report an
OperationStatus plus how much input they consumed. The stage filters own the
carried remainders and turn statuses into exceptions (see utils.errors).
"""

import binascii
from typing import Optional, Tuple

from b64url_stream.utils.constants import URLSAFE_ALPHABET, PAD_CHAR
from b64url_stream.utils.errors import OperationStatus

_TO_URLSAFE = bytes.maketrans(b"+/", b"-_")
_TO_STANDARD = str.maketrans("-_", "+/")
# translate() with this table leaves only the non-alphabet characters
_STRIP_ALPHABET = {ord(c): None for c in URLSAFE_ALPHABET}


def max_decoded_length(n: int) -> int:
    return ((n + 3) // 4) * 3


def pad_count(n: int) -> int:
    """Number of '=' needed to bring `n` encoded characters up to a multiple of 4."""
    return (4 - n % 4) % 4


def make_url_safe(encoded: bytes) -> str:
    """Standard Base64 output -> wire text: '+' -> '-', '/' -> '_', trailing '=' dropped."""
    return encoded.translate(_TO_URLSAFE).rstrip(b"=").decode("ascii")


def revert_url_safe(text: str) -> str:
    """Wire text -> standard alphabet: '-' -> '+', '_' -> '/'."""
    return text.translate(_TO_STANDARD)


def is_url_safe(text: str) -> bool:
    """True when every character of `text` is in the URL-safe alphabet (no '=' either)."""
    return not text.translate(_STRIP_ALPHABET)


def encode_to_base64(data, is_final: bool = True) -> Tuple[OperationStatus, bytes, int]:
    """
    Encode whole 3-byte groups of `data` (everything when `is_final`).

    Returns (status, standard-alphabet output, bytes consumed).
    """
    n = len(data)
    consumed = n if is_final else n - n % 3
    if consumed == 0:
        return OperationStatus.DONE, b"", 0
    encoded = binascii.b2a_base64(data[:consumed], newline=False)
    return OperationStatus.DONE, encoded, consumed


def decode_from_base64url(text: str, is_final: bool = True, dest_capacity: Optional[int] = None) -> Tuple[OperationStatus, bytes, int]:
    """
    Decode whole 4-character groups of URL-safe `text`.

    Non-final calls stop at the last complete group and reject '='. A final
    call needs `text` already padded to a multiple of 4 and accepts up to two
    trailing pad characters. Returns (status, decoded bytes, characters consumed).
    """
    n = len(text)
    if is_final:
        if n % 4:
            return OperationStatus.NEED_MORE_DATA, b"", 0
        usable = n
    else:
        usable = n - n % 4
    if usable == 0:
        return OperationStatus.DONE, b"", 0

    group = text[:usable]
    body = group
    if is_final:
        body = group.rstrip(PAD_CHAR)
        if len(group) - len(body) > 2:
            return OperationStatus.INVALID_DATA, b"", 0
    if not is_url_safe(body):
        return OperationStatus.INVALID_DATA, b"", 0

    if dest_capacity is not None and max_decoded_length(usable) > dest_capacity:
        return OperationStatus.DESTINATION_TOO_SMALL, b"", 0
    try:
        decoded = binascii.a2b_base64(revert_url_safe(group))
    except binascii.Error:
        return OperationStatus.INVALID_DATA, b"", 0
    return OperationStatus.DONE, decoded, usable
