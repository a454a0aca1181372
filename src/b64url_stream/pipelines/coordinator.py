import logging
import threading
import time
from typing import Any, Iterable, List, Optional, Sequence

from b64url_stream.utils.channel import CancelToken, Channel, ChannelFailed
from b64url_stream.utils.chunk import Chunk, ChunkPool
from b64url_stream.utils.constants import SENTINEL, DEFAULT_QUEUE_SIZE
from b64url_stream.utils.errors import CancellationError
from b64url_stream.utils.metrics import MetricsCollector
from b64url_stream.utils.thread_log import log_start, log_end

logger = logging.getLogger(__name__)

JOIN_POLL = 0.1


def _release(items: Iterable[Any]) -> None:
    for item in items:
        if isinstance(item, Chunk):
            item.release()


class PipelineCoordinator:
    """
    Runs a source and a line of filters, one thread each, joined by bounded channels.

    source: object with stage_name and produce() -> iterator of items
    stages: objects with stage_name, process(item) -> list and flush() -> list;
            the last one is the sink and its outputs are discarded

    The first error raised anywhere is kept and re-raised by run()/result();
    it also trips the cancel token so every other stage stops promptly.
    """
    def __init__(self, source, stages: Sequence, queue_size: int = DEFAULT_QUEUE_SIZE,
                 cancel: Optional[CancelToken] = None, pool: Optional[ChunkPool] = None,
                 name: str = "pipeline"):
        if not stages:
            raise ValueError("a pipeline needs at least one stage after the source")
        self.name = name
        self.source = source
        self.stages = list(stages)
        self.pool = pool
        self.cancel_token = cancel if cancel is not None else CancelToken()
        self.stage_names = [source.stage_name] + [s.stage_name for s in self.stages]
        self.channels = [
            Channel(f"{self.stage_names[i]}->{self.stage_names[i + 1]}", queue_size, self.cancel_token)
            for i in range(len(self.stages))
        ]
        self.metrics = MetricsCollector(self.stage_names)
        self.threads: List[threading.Thread] = []
        self._error_lock = threading.Lock()
        self._first_error: Optional[BaseException] = None
        self._started = False
        self._closed = False

    @property
    def error(self) -> Optional[BaseException]:
        return self._first_error

    def _record_error(self, stage_idx: int, error: BaseException) -> None:
        with self._error_lock:
            first = self._first_error is None
            if first:
                self._first_error = error
        # cancellations triggered by an earlier failure are not errors of their own
        if first or not isinstance(error, CancellationError):
            self.metrics.record_error(stage_idx)
        if not first:
            logger.debug("stage %s: discarding secondary error %r", self.stage_names[stage_idx], error)
            return
        logger.info("stage %s failed: %r; stopping pipeline", self.stage_names[stage_idx], error)
        self.cancel_token.cancel()

    def _emit(self, outputs: List[Any], out_ch: Optional[Channel]) -> None:
        if out_ch is None:
            _release(outputs)
            return
        for i, item in enumerate(outputs):
            try:
                out_ch.put(item)
            except BaseException:
                _release(outputs[i:])
                raise

    def _source_worker(self) -> None:
        name = self.stage_names[0]
        out_ch = self.channels[0]
        log_start(name)
        items = self.source.produce()
        try:
            while True:
                start = time.time()
                item = next(items, SENTINEL)
                if item is SENTINEL:
                    break
                self.metrics.record_success(0, time.time() - start, units_out=len(item))
                self._emit([item], out_ch)
            out_ch.complete()
            log_end(name)
        except Exception as e:
            out_ch.fail(e)
            self._record_error(0, e)
            log_end(name, "error", repr(e))
        finally:
            items.close()

    def _stage_worker(self, stage_idx: int) -> None:
        stage = self.stages[stage_idx - 1]
        name = self.stage_names[stage_idx]
        in_ch = self.channels[stage_idx - 1]
        out_ch = self.channels[stage_idx] if stage_idx < len(self.channels) else None
        log_start(name)
        try:
            while True:
                item = in_ch.get()
                if item is SENTINEL:
                    break
                units_in = len(item)
                start = time.time()
                try:
                    outputs = stage.process(item)
                except BaseException:
                    _release([item])
                    raise
                self.metrics.record_success(stage_idx, time.time() - start, units_in,
                                            sum(len(o) for o in outputs))
                self._emit(outputs, out_ch)
            # end of input: flush trailing state, then signal done
            self._emit(stage.flush(), out_ch)
            if out_ch is not None:
                out_ch.complete()
            log_end(name)
        except ChannelFailed as e:
            # cascade: pass the upstream cause on, it is already recorded
            if out_ch is not None:
                out_ch.fail(e.cause)
            log_end(name, "aborted", repr(e.cause))
        except Exception as e:
            if out_ch is not None:
                out_ch.fail(e)
            self._record_error(stage_idx, e)
            log_end(name, "error", repr(e))

    def start(self) -> None:
        if self._started:
            raise RuntimeError("Pipeline is already running")
        self._started = True
        workers = [(0, self._source_worker, ())]
        workers += [(i, self._stage_worker, (i,)) for i in range(1, len(self.stage_names))]
        for idx, target, args in workers:
            thread_name = f"{self.name}-{idx}-{self.stage_names[idx]}"
            t = threading.Thread(target=target, args=args, name=thread_name, daemon=True)
            t.start()
            self.threads.append(t)
        logger.debug("[%s] started %d stage(s): %s", self.name, len(self.threads), " -> ".join(self.stage_names))

    def cancel(self) -> None:
        """Request cooperative cancellation; run()/result() then raise CancellationError."""
        logger.info("[%s] cancellation requested", self.name)
        self.cancel_token.cancel()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for every stage thread. Returns False if `timeout` expired first."""
        deadline = None if timeout is None else time.time() + timeout
        for t in self.threads:
            # short joins keep the caller responsive to KeyboardInterrupt
            while t.is_alive():
                if deadline is not None and time.time() >= deadline:
                    return False
                t.join(JOIN_POLL)
        self._close()
        return True

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        released = sum(ch.drain() for ch in self.channels)
        if released:
            logger.debug("[%s] released %d undelivered chunk(s)", self.name, released)

    def result(self) -> None:
        """Raise the first error observed by any stage, if there was one."""
        if self._first_error is not None:
            raise self._first_error

    def run(self) -> "PipelineCoordinator":
        self.start()
        self.join()
        self.result()
        return self

    def format_metrics(self) -> str:
        lines = []
        for entry in self.metrics.snapshot():
            idx = entry["stage"]
            qsize = self.channels[idx].qsize() if idx < len(self.channels) else 0
            lines.append(
                f"Stage {idx + 1} ({entry['name']}): processed={entry['processed']}, "
                f"in={entry['units_in']}, out={entry['units_out']}, errors={entry['errors']}, "
                f"avg_latency={entry['avg_latency']:.6f}s, queue_size={qsize}"
            )
        return "\n".join(lines)
