# services/store.py
import datetime as dt
import json, logging, os, tempfile, threading
from typing import Iterable, List, Optional
from models import HistoricalDraw, SolarIndexSample

logger = logging.getLogger(__name__)

DRAWS_FILE = "draws.json"
KP_FILE = "kp_history.json"
LOTTERY_SOURCES = ("lottery", "imported")

_EPOCH = dt.datetime(1970, 1, 1)

def _seconds(d: dt.date, t: dt.time) -> int:
    return int((dt.datetime.combine(d, t.replace(microsecond=0)) - _EPOCH).total_seconds())

class MemoryStore:
    """
    Тиражи и история Kp в памяти.
    Только сторона чтения нужна движку; запись - для вызывающего кода и импорта.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._draws: List[HistoricalDraw] = []
        self._kp: dict[tuple, SolarIndexSample] = {}

    def _persist(self) -> None:
        pass

    # ===== тиражи

    def add_draw(self, draw: HistoricalDraw) -> None:
        self.add_draws([draw])

    def add_draws(self, draws: Iterable[HistoricalDraw]) -> None:
        with self._lock:
            self._draws.extend(draws)
            self._persist()

    def list_draws(self, sources: Optional[Iterable[str]] = None) -> List[HistoricalDraw]:
        """Снимок тиражей, от новых к старым. sources=None - все источники."""
        with self._lock:
            items = list(self._draws)
        if sources is not None:
            allowed = set(sources)
            items = [d for d in items if d.source in allowed]
        items.sort(key=lambda d: (d.date, d.time), reverse=True)
        return items

    def lottery_draws(self) -> List[HistoricalDraw]:
        # реальные тиражи, без сгенерированных
        return self.list_draws(LOTTERY_SOURCES)

    def count(self) -> int:
        with self._lock:
            return len(self._draws)

    def count_by_source(self, tag: str) -> int:
        with self._lock:
            return sum(1 for d in self._draws if d.source == tag)

    # ===== Kp

    def add_kp(self, sample: SolarIndexSample) -> None:
        # уникальность по (date, time): новая запись заменяет старую
        with self._lock:
            self._kp[(sample.date, sample.time)] = sample
            self._persist()

    def kp_samples(self) -> List[SolarIndexSample]:
        with self._lock:
            return sorted(self._kp.values(), key=lambda s: (s.date, s.time))

    def kp_at(self, date: dt.date, time: dt.time) -> Optional[SolarIndexSample]:
        with self._lock:
            return self._kp.get((date, time))

    def nearest_kp(self, date: dt.date, time: dt.time, hours: int = 3,
                   samples: Optional[List[SolarIndexSample]] = None) -> Optional[SolarIndexSample]:
        """
        Ближайший Kp в пределах ±hours (по полным секундам).
        При равенстве расстояний в минутах - более ранний в порядке обхода (по возрастанию времени).
        samples: готовый отсортированный снимок kp_samples().
        """
        target = _seconds(date, time)
        limit = hours * 3600
        best, best_dist = None, None
        for s in (self.kp_samples() if samples is None else samples):
            at = _seconds(s.date, s.time)
            if abs(at - target) > limit:
                continue
            dist = abs(at // 60 - target // 60)
            if best_dist is None or dist < best_dist:
                best, best_dist = s, dist
        return best

    def kp_average(self) -> Optional[float]:
        values = [s.kp_value for s in self.kp_samples()]
        return sum(values) / len(values) if values else None

    def kp_average_in_range(self, start: dt.date, end: dt.date) -> Optional[float]:
        values = [s.kp_value for s in self.kp_samples() if start <= s.date <= end]
        return sum(values) / len(values) if values else None

    def kp_latest(self) -> Optional[SolarIndexSample]:
        samples = self.kp_samples()
        return samples[-1] if samples else None

    def kp_count(self) -> int:
        with self._lock:
            return len(self._kp)

class JsonStore(MemoryStore):
    """То же, но с атомарной записью JSON-снимков на диск после каждого изменения."""

    def __init__(self, root: str):
        super().__init__()
        self.root = root
        self._load()

    def _path(self, name: str) -> str:
        return os.path.join(self.root, name)

    def _read(self, name: str) -> list:
        p = self._path(name)
        if not os.path.exists(p):
            return []
        with open(p, "r", encoding="utf-8") as f:
            return json.load(f)

    def _load(self) -> None:
        draws = [HistoricalDraw.model_validate(j) for j in self._read(DRAWS_FILE)]
        samples = [SolarIndexSample.model_validate(j) for j in self._read(KP_FILE)]
        with self._lock:
            self._draws = draws
            self._kp = {(s.date, s.time): s for s in samples}
        logger.info("store %s: %d draws, %d kp samples", self.root, len(draws), len(samples))

    def _write(self, name: str, payload: list) -> None:
        """Атомарная запись JSON-снимка."""
        os.makedirs(self.root, exist_ok=True)
        tmp_fd, tmp_path = tempfile.mkstemp(dir=self.root, prefix=f".{name}.", suffix=".tmp")
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, self._path(name))

    def _persist(self) -> None:
        self._write(DRAWS_FILE, [d.model_dump(mode="json") for d in self._draws])
        self._write(KP_FILE, [s.model_dump(mode="json") for s in self._kp.values()])
