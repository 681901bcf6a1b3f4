import logging, threading, time
from rng.local_pool import EntropyPool

logger = logging.getLogger(__name__)

def cpu_jitter_bytes(samples: int = 20000) -> bytes:
    """
    Измеряем наносекундные дельты tight-loop; берём младший байт каждой дельты.
    """
    last = time.perf_counter_ns()
    out = bytearray()
    for _ in range(samples):
        now = time.perf_counter_ns()
        dt = now - last
        out.append(dt & 0xFF)  # LSB
        last = now
    return bytes(out)

class JitterProducer:
    """
    Серверный производитель шума: свой поток, кладёт чанки в пул через offer().
    Пул сам решает, что выбросить; поток никогда не ждёт потребителя.
    """

    def __init__(self, pool: EntropyPool, samples: int = 2048, interval_s: float = 0.05):
        self.pool = pool
        self.samples = max(1, int(samples))
        self.interval_s = max(0.0, float(interval_s))
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def _run(self):
        while not self._stop.is_set():
            self.pool.offer(cpu_jitter_bytes(self.samples))
            self._stop.wait(self.interval_s)

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="jitter-producer", daemon=True)
        self._thread.start()
        logger.info("jitter producer started (%d samples / %.3fs)", self.samples, self.interval_s)

    def stop(self, timeout: float = 1.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
