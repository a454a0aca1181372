import queue
import threading
from typing import Any, Optional

from b64url_stream.utils.chunk import Chunk
from b64url_stream.utils.constants import SENTINEL, DEFAULT_QUEUE_SIZE
from b64url_stream.utils.errors import CancellationError

# how often a blocked get/put re-checks cancellation and failure
POLL_INTERVAL = 0.05


class CancelToken:
    """Single cooperative cancellation signal shared by every stage of a pipeline."""
    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError("pipeline cancelled")


class ChannelFailed(Exception):
    """Raised by Channel.get() when the producer failed; `cause` is the original error."""
    def __init__(self, cause: BaseException):
        super().__init__(f"upstream failed: {cause!r}")
        self.cause = cause


class Channel:
    """
    Bounded single-producer/single-consumer queue between two stages.

    Items arrive strictly in put() order. complete() enqueues SENTINEL behind
    the data; fail() is out-of-band so the consumer sees it on its next get()
    even when data is still queued.
    """
    def __init__(self, name: str, maxsize: int = DEFAULT_QUEUE_SIZE, cancel: Optional[CancelToken] = None):
        self.name = name
        self._queue = queue.Queue(maxsize=max(1, int(maxsize)))
        self._cancel = cancel if cancel is not None else CancelToken()
        self._failure: Optional[BaseException] = None

    @property
    def failure(self) -> Optional[BaseException]:
        return self._failure

    def put(self, item: Any) -> None:
        # blocks while full: this is where backpressure reaches the producer
        while True:
            self._cancel.raise_if_cancelled()
            try:
                self._queue.put(item, timeout=POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def get(self) -> Any:
        while True:
            if self._failure is not None:
                raise ChannelFailed(self._failure)
            self._cancel.raise_if_cancelled()
            try:
                return self._queue.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue

    def complete(self) -> None:
        self.put(SENTINEL)

    def fail(self, error: BaseException) -> None:
        if self._failure is None:
            self._failure = error

    def qsize(self) -> int:
        return self._queue.qsize()

    def drain(self) -> int:
        """Drop whatever is still queued, returning pooled chunks. Returns the number released."""
        released = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return released
            if isinstance(item, Chunk):
                item.release()
                released += 1
