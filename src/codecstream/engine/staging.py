from __future__ import annotations

from typing import Any

WORK_DATA_SIZE = 0x1000

# decompress only: natural end of compressed data reached, read nothing more
END_OF_STREAM = -1


class StagingBuffer:
    """
    Fixed-capacity byte buffer + cursor between the codec and the sink/source.

    Decompress: ``pos`` = first not-yet-decoded byte of the latest raw read
    (or END_OF_STREAM). Compress: ``pos`` = compressed bytes waiting for the
    sink.
    """

    def __init__(self, capacity: int = WORK_DATA_SIZE):
        if capacity < 1:
            raise ValueError(f"staging capacity must be >= 1, got {capacity}")
        self.capacity = int(capacity)
        self.data = bytearray(self.capacity)
        self.view = memoryview(self.data)
        self.pos = 0

    @property
    def at_end(self) -> bool:
        return self.pos == END_OF_STREAM

    @property
    def room(self) -> int:
        return self.capacity - self.pos

    def mark_end(self) -> None:
        self.pos = END_OF_STREAM

    def refill(self, source: Any) -> int:
        """Raw read of up to ``capacity`` bytes from ``source``; cursor back to 0."""
        self.pos = 0
        readinto = getattr(source, "readinto", None)
        if readinto is not None:
            n = readinto(self.view)
            return int(n or 0)
        chunk = source.read(self.capacity)
        if not chunk:
            return 0
        n = len(chunk)
        if n > self.capacity:
            raise ValueError(f"source returned {n} bytes, asked for at most {self.capacity}")
        self.view[:n] = chunk
        return n

    def drain_to(self, sink: Any) -> int:
        """Hand the pending bytes to ``sink``; cursor back to 0. Returns bytes written."""
        n = self.pos
        if n > 0:
            sink.write(bytes(self.view[:n]))
        self.pos = 0
        return n
