"""In-process counters and gauges for cycle bookkeeping."""

import threading
from collections import defaultdict
from typing import Dict


class Telemetry:
    """Thread-safe counter and gauge registry."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Dict[str, float] = defaultdict(float)
        self._gauges: Dict[str, float] = {}

    def inc(self, name: str, value: float = 1) -> None:
        with self._lock:
            self._counters[name] += value

    def gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = float(value)

    def get(self, name: str, default: float = 0.0) -> float:
        with self._lock:
            if name in self._gauges:
                return self._gauges[name]
            return self._counters.get(name, default)

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {"counters": dict(self._counters), "gauges": dict(self._gauges)}

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._gauges.clear()


telemetry = Telemetry()
