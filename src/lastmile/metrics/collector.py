"""In-process metrics collector.

Counts verification and delay-check outcomes and keeps a few gauges
from the last sweep.  Exports in Prometheus text format so an outer
process can expose or push them.
"""

from __future__ import annotations

import threading
import time

_HELP = {
    "lastmile_verifications_generated_total": "Delivery credentials generated",
    "lastmile_verifications_total": "Verification attempts by method and result",
    "lastmile_delay_checks_total": "Delay checks by result",
    "lastmile_delay_transitions_total": "Status writes issued by the delay monitor",
    "lastmile_sweep_checked": "Orders checked by the last delay sweep",
    "lastmile_sweep_delayed": "Orders found delayed by the last delay sweep",
}


class MetricsCollector:
    """Thread-safe counters and gauges keyed by name and labels."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}
        self._gauges: dict[str, float] = {}
        self._start_time = time.time()

    def increment(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def set_gauge(self, name: str, value: float, labels: dict | None = None) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._gauges[key] = value

    def get(self, name: str, labels: dict | None = None) -> float:
        """Return a counter or gauge value, 0 when never recorded."""
        key = self._make_key(name, labels)
        with self._lock:
            if key in self._gauges:
                return self._gauges[key]
            return self._counters.get(key, 0)

    def export(self) -> str:
        """Export all metrics in Prometheus text format."""
        lines = [
            "# HELP lastmile_uptime_seconds Time since process start",
            "# TYPE lastmile_uptime_seconds gauge",
            f"lastmile_uptime_seconds {time.time() - self._start_time:.1f}",
            "",
        ]

        with self._lock:
            for kind, values in (("counter", self._counters), ("gauge", self._gauges)):
                grouped: dict[str, list[tuple[str, float]]] = {}
                for key, value in sorted(values.items()):
                    grouped.setdefault(key.split("{")[0], []).append((key, value))

                for name, entries in sorted(grouped.items()):
                    if name in _HELP:
                        lines.append(f"# HELP {name} {_HELP[name]}")
                    lines.append(f"# TYPE {name} {kind}")
                    lines.extend(f"{key} {value}" for key, value in entries)
                    lines.append("")

        return "\n".join(lines) + "\n"

    @staticmethod
    def _make_key(name: str, labels: dict | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"
