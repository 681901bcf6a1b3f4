# services/weights.py
"""
Веса чисел для калиброванной генерации.

Частоты из истории тиражей, опционально скорректированные
близостью текущего Kp к среднему Kp, при котором число выпадало.
Это эвристика перевзвешивания, а не физическая модель.
"""
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
from models import HistoricalDraw, SolarIndexSample
from services.sample import uniform_weights
from services.store import MemoryStore

logger = logging.getLogger(__name__)

MIN_WEIGHT = 0.001          # пол для чисел, ни разу не выпадавших
MAX_KP = 9.0                # потолок шкалы Kp, не из данных
KP_BASE_SHARE = 0.6         # 60% частота + 40% близость по Kp
KP_BONUS_SHARE = 0.4
KP_WINDOW_HOURS = 3
TOP_N = 10

WeightTable = Dict[int, float]

@dataclass
class WeightAnalysis:
    total_draws: int
    frequencies: Dict[int, int]
    weights: WeightTable
    top_numbers: List[Tuple[int, float]]
    status: str                      # ok | empty
    message: str
    unique_numbers: set = field(default_factory=set)

@dataclass
class DatabaseStats:
    total_records: int
    lottery_records: int
    generated_records: int

def _normalize(table: Dict[int, float]) -> Optional[WeightTable]:
    total = sum(table.values())
    if total <= 0:
        return None
    return {n: w / total for n, w in table.items()}

def count_frequencies(draws: Sequence[HistoricalDraw], lo: int, hi: int) -> Dict[int, int]:
    freq: Counter = Counter()
    for d in draws:
        freq.update(n for n in d.numbers if lo <= n <= hi)
    return dict(freq)

def frequency_weights(draws: Sequence[HistoricalDraw], lo: int, hi: int) -> WeightTable:
    """
    occ / total для выпадавших, MIN_WEIGHT для остальных, затем повторная нормализация.
    Пустая история -> равномерная таблица.
    """
    freq = count_frequencies(draws, lo, hi)
    if not freq:
        return uniform_weights(lo, hi)

    total = sum(freq.values())
    raw = {n: (freq[n] / total if freq.get(n, 0) > 0 else MIN_WEIGHT) for n in range(lo, hi + 1)}
    return _normalize(raw)

def kp_similarity(current_kp: float, avg_kp: float) -> float:
    diff = abs(current_kp - avg_kp)
    return 1.0 - min(1.0, max(0.0, diff / MAX_KP))

class WeightAnalyzer:
    """Анализ поверх хранилища; хранилище передаётся явно, кеша нет."""

    def __init__(self, store: MemoryStore):
        self.store = store

    def analyze(self, lo: int, hi: int,
                draws: Optional[Sequence[HistoricalDraw]] = None) -> WeightAnalysis:
        if draws is None:
            draws = self.store.lottery_draws()

        if not draws:
            logger.info("analysis: no draws, uniform weights for [%d, %d]", lo, hi)
            return WeightAnalysis(
                total_draws=0, frequencies={}, weights=uniform_weights(lo, hi), top_numbers=[],
                status="empty", message="No historical draws to analyze; uniform weights used.",
            )

        freq = count_frequencies(draws, lo, hi)
        weights = frequency_weights(draws, lo, hi)
        top = sorted(weights.items(), key=lambda kv: kv[1], reverse=True)[:TOP_N]
        return WeightAnalysis(
            total_draws=len(draws), frequencies=freq, weights=weights, top_numbers=top,
            status="ok" if freq else "empty",
            message=f"Analyzed {len(draws)} draws, {len(freq)} unique numbers in range.",
            unique_numbers=set(freq),
        )

    def kp_for_draw(self, draw: HistoricalDraw,
                    samples: Optional[List[SolarIndexSample]] = None) -> Optional[float]:
        exact = self.store.kp_at(draw.date, draw.time)
        if exact is not None:
            return exact.kp_value
        nearest = self.store.nearest_kp(draw.date, draw.time, KP_WINDOW_HOURS, samples)
        return nearest.kp_value if nearest is not None else None

    def solar_correlation(self, lo: int, hi: int,
                          draws: Optional[Sequence[HistoricalDraw]] = None) -> Dict[int, float]:
        """Средний Kp по каждому числу; тиражи без Kp исключаются целиком."""
        if draws is None:
            draws = self.store.lottery_draws()

        per_number: Dict[int, List[float]] = defaultdict(list)
        samples = self.store.kp_samples()
        for d in draws:
            kp = self.kp_for_draw(d, samples)
            if kp is None:
                continue
            for n in d.numbers:
                if lo <= n <= hi:
                    per_number[n].append(kp)

        return {n: sum(v) / len(v) for n, v in per_number.items()}

    def kp_adjusted_weights(self, lo: int, hi: int, current_kp: float) -> WeightTable:
        draws = self.store.lottery_draws()
        base = self.analyze(lo, hi, draws).weights

        avg_per_number = self.solar_correlation(lo, hi, draws)
        if not avg_per_number:
            return base

        global_avg = self.store.kp_average()
        if global_avg is None:
            global_avg = current_kp

        uniform = 1.0 / (hi - lo + 1)
        adjusted = {}
        for n in range(lo, hi + 1):
            sim = kp_similarity(current_kp, avg_per_number.get(n, global_avg))
            adjusted[n] = base.get(n, uniform) * (KP_BASE_SHARE + KP_BONUS_SHARE * sim)

        return _normalize(adjusted) or base

    def magnetic_correlation(self, lo: int, hi: int,
                             draws: Optional[Sequence[HistoricalDraw]] = None) -> Dict[int, float]:
        # зарезервировано под будущий сигнал магнитного поля
        return {}

    def combined_weights(self, lo: int, hi: int,
                         frequency_weight: float = 0.7,
                         solar_weight: float = 0.2,
                         magnetic_weight: float = 0.1) -> WeightTable:
        draws = self.store.lottery_draws()
        freq_w = self.analyze(lo, hi, draws).weights
        solar = self.solar_correlation(lo, hi, draws)
        magnetic = self.magnetic_correlation(lo, hi, draws)

        uniform = 1.0 / (hi - lo + 1)
        combined = {}
        for n in range(lo, hi + 1):
            f = freq_w.get(n, uniform)
            combined[n] = (f * frequency_weight
                           + solar.get(n, f) * solar_weight
                           + magnetic.get(n, f) * magnetic_weight)

        return _normalize(combined) or freq_w

    def stats(self) -> DatabaseStats:
        return DatabaseStats(
            total_records=self.store.count(),
            lottery_records=self.store.count_by_source("lottery") + self.store.count_by_source("imported"),
            generated_records=self.store.count_by_source("generated"),
        )
