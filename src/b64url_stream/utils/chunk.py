import threading
from typing import Dict, List, Optional

from b64url_stream.utils.errors import CapacityError

MIN_CAPACITY = 64
MAX_FREE_PER_TIER = 16


def capacity_tier(size: int) -> int:
    """Smallest power-of-two capacity (>= MIN_CAPACITY) that holds `size` bytes."""
    cap = MIN_CAPACITY
    while cap < size:
        cap <<= 1
    return cap


class Chunk:
    """
    Owned byte buffer rented from a ChunkPool.

    Only buffer[:length] is meaningful. Exactly one stage owns a chunk at a
    time; the owner releases it once the data has been read. Use it as a
    context manager so the buffer goes back to the pool on every exit path.
    """
    __slots__ = ("buffer", "length", "_pool")

    def __init__(self, buffer: bytearray, pool: Optional["ChunkPool"] = None):
        self.buffer = buffer
        self.length = 0
        self._pool = pool

    @property
    def capacity(self) -> int:
        return len(self.buffer)

    @property
    def released(self) -> bool:
        return self._pool is None

    def write(self, data) -> int:
        n = len(data)
        if n > self.capacity:
            raise CapacityError(f"chunk capacity {self.capacity} < {n} bytes")
        # same-length slice assignment: the bytearray is never resized
        self.buffer[:n] = data
        self.length = n
        return n

    def tobytes(self) -> bytes:
        return bytes(self.buffer[:self.length])

    def release(self) -> None:
        pool, self._pool = self._pool, None
        self.length = 0
        if pool is not None:
            pool._give_back(self.buffer)

    def __len__(self) -> int:
        return self.length

    def __enter__(self) -> "Chunk":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"Chunk(length={self.length}, capacity={self.capacity})"


class ChunkPool:
    """
    Capacity-tiered free list of byte buffers.

    The lock only guards the free lists; rented chunks are never shared.
    """
    def __init__(self, max_free_per_tier: int = MAX_FREE_PER_TIER):
        self._lock = threading.Lock()
        self._free: Dict[int, List[bytearray]] = {}
        self._max_free = max(0, int(max_free_per_tier))
        self._outstanding = 0
        self._allocated = 0

    def rent(self, min_capacity: int) -> Chunk:
        cap = capacity_tier(max(1, int(min_capacity)))
        with self._lock:
            free = self._free.get(cap)
            buf = free.pop() if free else None
            if buf is None:
                self._allocated += 1
            self._outstanding += 1
        if buf is None:
            buf = bytearray(cap)
        return Chunk(buf, self)

    def _give_back(self, buf: bytearray) -> None:
        with self._lock:
            self._outstanding -= 1
            free = self._free.setdefault(len(buf), [])
            if len(free) < self._max_free:
                free.append(buf)

    @property
    def outstanding(self) -> int:
        """Chunks rented and not yet released."""
        with self._lock:
            return self._outstanding

    @property
    def allocated(self) -> int:
        """Buffers ever allocated (a pool hit does not count)."""
        with self._lock:
            return self._allocated
