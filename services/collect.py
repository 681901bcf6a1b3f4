# services/collect.py
import logging, time
from typing import Callable
from rng.local_pool import EntropyPool
from rng.mix import WINDOW_BYTES
from rng.result import Ok, Result, insufficient_entropy

logger = logging.getLogger(__name__)

class CollectParams:
    def __init__(self, window_bytes=WINDOW_BYTES, deadline_s=5.0, poll_s=0.1):
        # не короче WINDOW_BYTES
        self.window_bytes = max(WINDOW_BYTES, int(window_bytes or WINDOW_BYTES))
        self.deadline_s = max(0.0, float(deadline_s or 0.0))
        self.poll_s = max(0.001, float(poll_s or 0.001))

class EntropyCollector:
    """
    Собирает окно фиксированного размера из общей очереди.
    Синхронный: вызывать из рабочего потока, не из event loop.
    """

    def __init__(self, pool: EntropyPool, params: CollectParams | None = None,
                 clock: Callable[[], float] = time.monotonic):
        self.pool = pool
        self.params = params or CollectParams()
        self._clock = clock

    def collect(self) -> Result[bytes]:
        p = self.params
        window = bytearray(p.window_bytes)
        offset = 0
        chunks = 0
        end = self._clock() + p.deadline_s

        while offset < p.window_bytes:
            remain = end - self._clock()
            if remain <= 0:
                msg = f"Not enough entropy: {offset} < {p.window_bytes} bytes after {p.deadline_s:g}s"
                logger.warning(msg)
                return insufficient_entropy(msg)

            chunk = self.pool.poll(min(p.poll_s, remain))
            if chunk is None:
                continue
            # хвост чанка, не влезающий в окно, отбрасываем
            take = min(len(chunk), p.window_bytes - offset)
            window[offset:offset + take] = chunk[:take]
            offset += take
            chunks += 1

        logger.debug("window collected from %d chunks (dropped so far: %d)", chunks, self.pool.dropped)
        return Ok(bytes(window))
