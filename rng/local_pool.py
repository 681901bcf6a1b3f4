import threading
from collections import deque
from typing import Optional
from blake3 import blake3

class EntropyPool:
    """
    Общая очередь сырых чанков от источников шума.
    Несколько производителей, один потребитель (коллектор).
    offer() никогда не блокирует: при переполнении вытесняется самый старый чанк.
    """

    def __init__(self, capacity: int = 100):
        self._chunks: deque[bytes] = deque(maxlen=max(1, int(capacity)))
        self._cond = threading.Condition()
        self.offered = 0
        self.dropped = 0

    @property
    def capacity(self) -> int:
        return self._chunks.maxlen

    def offer(self, data: bytes) -> None:
        if not data:
            return
        with self._cond:
            if len(self._chunks) == self._chunks.maxlen:
                self.dropped += 1
            self._chunks.append(bytes(data))
            self.offered += 1
            self._cond.notify()

    def poll(self, timeout: float) -> Optional[bytes]:
        """Забрать самый старый чанк; None, если за timeout ничего не пришло."""
        with self._cond:
            if not self._chunks:
                self._cond.wait(max(0.0, timeout))
            if not self._chunks:
                return None
            return self._chunks.popleft()

    def clear(self) -> None:
        with self._cond:
            self._chunks.clear()

    def __len__(self) -> int:
        with self._cond:
            return len(self._chunks)

    def status(self) -> dict:
        with self._cond:
            return {
                "queued": len(self._chunks),
                "capacity": self._chunks.maxlen,
                "offered": self.offered,
                "dropped": self.dropped,
            }

def root_hex(window: bytes) -> str:
    # отпечаток окна для SSE и истории (сам по себе в числа не идёт)
    return blake3(window).hexdigest()
