"""Tracks audio levels per stream and reports the loudest speakers."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass
class AudioStream:
    """Accumulated audio level samples of one stream."""

    id: str
    sum: int = 0
    total: int = 0


class AudioObserver:
    """Collects audio levels and ranks the active streams."""

    def __init__(self, threshold: int, interval: int, filter: int) -> None:
        threshold = min(threshold, 127)
        filter = max(0, min(filter, 100))
        product = interval * filter
        expected = abs(product) // 2000
        self.threshold = threshold
        self.expected = expected if product >= 0 else -expected
        self.streams: list[AudioStream] = []
        self.previous: list[str] | None = None
        self._lock = threading.Lock()

    def add_stream(self, stream_id: str) -> None:
        """Start observing a stream."""
        with self._lock:
            self.streams.append(AudioStream(stream_id))

    def remove_stream(self, stream_id: str) -> None:
        """Stop observing a stream; the last stream takes its place."""
        with self._lock:
            idx = next((i for i, s in enumerate(self.streams) if s.id == stream_id), None)
            if idx is None:
                return
            last = self.streams.pop()
            if idx < len(self.streams):
                self.streams[idx] = last

    def observe(self, stream_id: str, dbov: int) -> None:
        """Record a level sample if it is at or below the threshold."""
        with self._lock:
            for stream in self.streams:
                if stream.id == stream_id:
                    if dbov <= self.threshold:
                        stream.sum += dbov
                        stream.total += 1
                    return

    def calc(self) -> list[str] | None:
        """Return active stream ids, loudest first, or None if unchanged."""
        with self._lock:
            self.streams.sort(key=lambda s: (-s.total, s.sum))
            ids = []
            for stream in self.streams:
                if stream.total >= self.expected:
                    ids.append(stream.id)
                stream.total = 0
                stream.sum = 0
            previous = self.previous or []
            if previous == ids:
                return None
            self.previous = ids
            return ids