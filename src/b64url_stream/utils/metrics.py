import threading
from typing import List, Dict, Any, Sequence


class MetricsCollector:
    """
    Thread-safe per-stage metrics: chunks, units in/out, errors, total_time.
    Stage workers call record_success / record_error; "units" are bytes or
    characters depending on which side of the codec the stage sits.
    """
    def __init__(self, stage_names: Sequence[str]):
        self._lock = threading.Lock()
        self._names = list(stage_names)
        self._num_stages = len(self._names)
        self.reset()

    def record_success(self, stage_idx: int, elapsed: float, units_in: int = 0, units_out: int = 0):
        if stage_idx < 0 or stage_idx >= self._num_stages:
            return
        with self._lock:
            self._counts[stage_idx] += 1
            self._total_time[stage_idx] += float(elapsed)
            self._units_in[stage_idx] += int(units_in)
            self._units_out[stage_idx] += int(units_out)

    def record_error(self, stage_idx: int):
        if stage_idx < 0 or stage_idx >= self._num_stages:
            return
        with self._lock:
            self._errors[stage_idx] += 1

    def snapshot(self) -> List[Dict[str, Any]]:
        with self._lock:
            out = []
            for i in range(self._num_stages):
                count = self._counts[i]
                total = self._total_time[i]
                avg = (total / count) if count else 0.0
                out.append({
                    "stage": i,
                    "name": self._names[i],
                    "processed": count,
                    "units_in": self._units_in[i],
                    "units_out": self._units_out[i],
                    "errors": self._errors[i],
                    "avg_latency": avg,
                    "total_time": total,
                })
            return out

    def reset(self):
        with self._lock:
            self._counts = [0] * self._num_stages
            self._errors = [0] * self._num_stages
            self._total_time = [0.0] * self._num_stages
            self._units_in = [0] * self._num_stages
            self._units_out = [0] * self._num_stages
