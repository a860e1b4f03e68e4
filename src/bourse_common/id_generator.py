"""Time-ordered order IDs.

IDs sort by creation time, so "newest first" listings can order by id alone.
Layout (64 bits): 41 bits ms since epoch | 10 bits node | 12 bits sequence.
"""

import threading
import time


class OrderIdGenerator:
    _EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
    _NODE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, node_id: int = 0) -> None:
        if not (0 <= node_id < (1 << self._NODE_BITS)):
            raise ValueError(f"node_id must be 0-{(1 << self._NODE_BITS) - 1}")
        self._node_id = node_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now_ms = int(time.time() * 1000)
            if now_ms < self._last_ms:
                # clock went backwards: keep issuing from the last timestamp
                now_ms = self._last_ms
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    while now_ms <= self._last_ms:
                        now_ms = int(time.time() * 1000)
            else:
                self._sequence = 0
            self._last_ms = now_ms
            value = (
                ((now_ms - self._EPOCH_MS) << (self._NODE_BITS + self._SEQUENCE_BITS))
                | (self._node_id << self._SEQUENCE_BITS)
                | self._sequence
            )
            # zero-padded so lexicographic order == numeric order
            return f"{value:020d}"


_default_generator = OrderIdGenerator()


def generate_id() -> str:
    return _default_generator.next_id()
