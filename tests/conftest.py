import random

import pytest

from b64url_stream.utils.chunk import ChunkPool


def random_bytes(n, seed=0):
    rng = random.Random(seed * 7919 + n)
    return bytes(rng.randrange(256) for _ in range(n))


def split_every(data, size):
    return [data[i:i + size] for i in range(0, len(data), size)]


@pytest.fixture
def pool():
    return ChunkPool()


@pytest.fixture
def make_chunk(pool):
    def _make(data):
        chunk = pool.rent(len(data))
        chunk.write(data)
        return chunk
    return _make
