"""Asynchronous structured logging for generation runs."""

from __future__ import annotations

import json
import queue
import threading
import time
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import ChunkCoordinate, PhaseStats


class NullLogger:
    """Accepts every event and records nothing."""

    def log_event(self, event: Dict[str, Any]) -> None:
        pass

    def log_phase_start(self, phase: str, coordinate: ChunkCoordinate) -> None:
        pass

    def log_phase_end(self, stats: PhaseStats, **extra: Any) -> None:
        pass

    def close(self) -> None:
        pass


class RunLogger(NullLogger):
    """Writes structured events to disk asynchronously."""

    def __init__(self, log_path: Path, summary_path: Optional[Path] = None) -> None:
        self._log_path = log_path
        self._summary_path = summary_path or log_path.with_suffix(".md")
        self._queue: "queue.Queue[Optional[Dict[str, Any]]]" = queue.Queue()
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._stop = threading.Event()
        self._phase_records: List[PhaseStats] = []
        self._records_lock = threading.Lock()
        self._closed = False
        log_path.parent.mkdir(parents=True, exist_ok=True)
        self._thread.start()

    @property
    def log_path(self) -> Path:
        return self._log_path

    @property
    def summary_path(self) -> Path:
        return self._summary_path

    def _worker(self) -> None:
        with self._log_path.open("a", encoding="utf8") as fh:
            while True:
                try:
                    item = self._queue.get(timeout=0.1)
                except queue.Empty:
                    if self._stop.is_set():
                        break
                    continue
                if item is None:
                    break
                json.dump(item, fh, sort_keys=True, default=str)
                fh.write("\n")
                fh.flush()

    def log_event(self, event: Dict[str, Any]) -> None:
        payload = {"timestamp": time.time(), **event}
        self._queue.put(payload)

    def log_phase_start(self, phase: str, coordinate: ChunkCoordinate) -> None:
        self.log_event({"type": f"chunk_{phase}_start", "chunk": [coordinate.x, coordinate.z]})

    def log_phase_end(self, stats: PhaseStats, **extra: Any) -> None:
        with self._records_lock:
            self._phase_records.append(stats)
        self.log_event({"type": f"chunk_{stats.phase}_end", "stats": stats.to_dict(), **extra})

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(None)
        self._stop.set()
        self._thread.join(timeout=2)
        self._write_summary()

    def _write_summary(self) -> None:
        with self._records_lock:
            records = list(self._phase_records)
        if not records:
            return
        counts: Dict[str, int] = defaultdict(int)
        durations: Dict[str, int] = defaultdict(int)
        for record in records:
            counts[record.phase] += 1
            durations[record.phase] += record.duration_ns
        total_duration = sum(durations.values())
        lines = ["# Generation Run Summary", "", f"- Total phases: {len(records)}"]
        lines.append(f"- Total duration (ms): {total_duration / 1e6:.2f}")
        lines.append("")
        lines.append("| Phase | Chunks | Total (ms) | Mean (ms) |")
        lines.append("| --- | ---: | ---: | ---: |")
        for phase in sorted(counts):
            total_ms = durations[phase] / 1e6
            lines.append(f"| {phase} | {counts[phase]} | {total_ms:.2f} | {total_ms / counts[phase]:.2f} |")
        self._summary_path.parent.mkdir(parents=True, exist_ok=True)
        self._summary_path.write_text("\n".join(lines), encoding="utf8")


__all__ = ["NullLogger", "RunLogger"]
