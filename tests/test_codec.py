import base64

import pytest

from b64url_stream.filters import binary_to_base64
from b64url_stream.filters.base64_to_binary import Base64ToBinaryFilter
from b64url_stream.filters.binary_to_base64 import BinaryToBase64Filter
from b64url_stream.pipelines.transcode import decode_text
from b64url_stream.utils.base64url import (
    decode_from_base64url,
    encode_to_base64,
    is_url_safe,
    make_url_safe,
    max_decoded_length,
    pad_count,
    revert_url_safe,
)
from b64url_stream.utils.errors import (
    CapacityError,
    ConsistencyError,
    DataFormatError,
    OperationStatus,
    throw_if_failed,
)

from conftest import random_bytes, split_every


def urlsafe(data):
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


# ---- low-level block functions ----

def test_encode_non_final_consumes_whole_groups_only():
    status, encoded, consumed = encode_to_base64(b"abcdefgh", is_final=False)
    assert status is OperationStatus.DONE
    assert consumed == 6
    assert encoded == b"YWJjZGVm"


def test_encode_final_consumes_everything():
    status, encoded, consumed = encode_to_base64(b"abcdefgh", is_final=True)
    assert status is OperationStatus.DONE
    assert consumed == 8
    assert encoded == b"YWJjZGVmZ2g="


def test_make_url_safe_translates_and_strips_padding():
    assert make_url_safe(b"+/+/ab==") == "-_-_ab"
    assert make_url_safe(b"") == ""


def test_revert_url_safe_translates_alphabet():
    assert revert_url_safe("-_ab") == "+/ab"
    assert revert_url_safe("abc") == "abc"


def test_is_url_safe():
    assert is_url_safe("aZ09-_")
    assert is_url_safe("")
    assert not is_url_safe("ab=")
    assert not is_url_safe("a+b")


def test_max_length_formulas():
    assert max_decoded_length(4) == 3
    assert max_decoded_length(8) == 6


def test_decode_non_final_leaves_partial_group():
    status, data, consumed = decode_from_base64url("aGVsbG8", is_final=False)
    assert status is OperationStatus.DONE
    assert data == b"hel"
    assert consumed == 4


def test_decode_rejects_padding_mid_stream():
    status, _, consumed = decode_from_base64url("bG8=d29y", is_final=False)
    assert status is OperationStatus.INVALID_DATA
    assert consumed == 0


def test_decode_final_requires_padded_text():
    status, _, _ = decode_from_base64url("bG8", is_final=True)
    assert status is OperationStatus.NEED_MORE_DATA


def test_decode_reports_small_destination():
    status, _, _ = decode_from_base64url("aGVsbG8=", is_final=True, dest_capacity=2)
    assert status is OperationStatus.DESTINATION_TOO_SMALL


def test_decode_rejects_standard_alphabet_characters():
    status, _, _ = decode_from_base64url("ab+/", is_final=False)
    assert status is OperationStatus.INVALID_DATA


# ---- status mapping ----

def test_throw_if_failed_mapping():
    throw_if_failed(OperationStatus.DONE, "op")
    with pytest.raises(DataFormatError):
        throw_if_failed(OperationStatus.INVALID_DATA, "op")
    with pytest.raises(DataFormatError):
        throw_if_failed(OperationStatus.NEED_MORE_DATA, "op")
    with pytest.raises(CapacityError):
        throw_if_failed(OperationStatus.DESTINATION_TOO_SMALL, "op")


def test_data_format_error_is_a_value_error():
    assert issubclass(DataFormatError, ValueError)


# ---- BinaryToBase64Filter ----

def test_encode_empty_final_block():
    f = BinaryToBase64Filter()
    assert f.encode(b"", is_final=True) == ("", 0)
    assert f.flush() == []


def test_encode_filter_carries_remainder(make_chunk):
    f = BinaryToBase64Filter()
    data = random_bytes(50, seed=3)
    out = []
    for piece in split_every(data, 7):
        out.extend(f.process(make_chunk(piece)))
    out.extend(f.flush())
    assert "".join(out) == urlsafe(data)


def test_encode_filter_releases_input_chunks(pool, make_chunk):
    f = BinaryToBase64Filter()
    f.process(make_chunk(b"abcd"))
    assert pool.outstanding == 0


@pytest.mark.parametrize("n, pads", [(0, 0), (1, 2), (2, 1), (3, 0), (4, 2), (5, 1), (6, 0)])
def test_padding_is_reconstructed_from_length(n, pads):
    f = BinaryToBase64Filter()
    text, _ = f.encode(random_bytes(n), is_final=True)
    assert "=" not in text
    assert pad_count(len(text)) == pads


def test_encode_final_short_consume_is_consistency_error(monkeypatch):
    monkeypatch.setattr(binary_to_base64, "encode_to_base64",
                        lambda data, is_final: (OperationStatus.DONE, b"", 0))
    with pytest.raises(ConsistencyError):
        BinaryToBase64Filter().encode(b"ab", is_final=True)


# ---- Base64ToBinaryFilter ----

def test_decode_filter_carry_across_every_split():
    data = random_bytes(40, seed=5)
    text = urlsafe(data)
    for size in (1, 2, 3, 5, 8, 13):
        f = Base64ToBinaryFilter()
        out = b""
        for piece in split_every(text, size):
            got, _ = f.decode(piece)
            out += got
        got, _ = f.decode("", is_final=True)
        assert out + got == data


def test_decode_filter_outputs_pooled_chunks(pool):
    f = Base64ToBinaryFilter(pool)
    chunks = f.process("aGVsbG8") + f.flush()
    assert b"".join(c.tobytes() for c in chunks) == b"hello"
    assert pool.outstanding == len(chunks)
    for c in chunks:
        c.release()
    assert pool.outstanding == 0


def test_decode_filter_translates_url_safe_alphabet():
    f = Base64ToBinaryFilter()
    data, _ = f.decode("-_-_", is_final=True)
    assert data == base64.b64decode("+/+/")


def test_decode_single_dangling_character_is_data_error():
    f = Base64ToBinaryFilter()
    f.decode("aGVsb")
    with pytest.raises(DataFormatError):
        f.decode("", is_final=True)


def test_decode_garbage_in_group_is_data_error():
    f = Base64ToBinaryFilter()
    with pytest.raises(DataFormatError):
        f.decode("aG*s")


def test_decode_garbage_in_final_remainder_is_data_error():
    f = Base64ToBinaryFilter()
    f.decode("aGVsb*")
    with pytest.raises(DataFormatError):
        f.decode("", is_final=True)


def test_decode_final_short_consume_is_consistency_error(monkeypatch):
    from b64url_stream.filters import base64_to_binary
    monkeypatch.setattr(base64_to_binary, "decode_from_base64url",
                        lambda text, is_final, dest_capacity=None: (OperationStatus.DONE, b"", 0))
    with pytest.raises(ConsistencyError):
        Base64ToBinaryFilter().decode("aGVs", is_final=True)


@pytest.mark.parametrize("text", ["YQ=", "aGVsbA=", "YQ =", "aGVsbA\n=", "YQ=="])
def test_decode_rejects_padding_in_input(text):
    with pytest.raises(DataFormatError):
        decode_text(text)


def test_decode_filter_rejects_padding_in_final_remainder():
    f = Base64ToBinaryFilter()
    f.decode("aGVsbA=")
    with pytest.raises(DataFormatError):
        f.decode("", is_final=True)


def test_decode_filter_small_destination_is_capacity_error():
    with pytest.raises(CapacityError):
        Base64ToBinaryFilter().decode("aGVsbG8h", dest_capacity=2)


@pytest.mark.parametrize("text", ["a", "ab", "abc", "abcd", "abcde", "aGVsbG8hIQ"])
def test_decode_filter_rents_chunks_large_enough(pool, text):
    f = Base64ToBinaryFilter(pool)
    chunks = []
    try:
        for piece in split_every(text, 3):
            chunks += f.process(piece)
        chunks += f.flush()
    except DataFormatError:
        pass
    for c in chunks:
        c.release()
    assert pool.outstanding == 0
