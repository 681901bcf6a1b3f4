# services/shaper.py
"""
Два поля по 4 числа из [1, 20] с вариативностью spread (max - min).

Статистика лотереи-образца:
- средняя разница spread между полями около 4.16;
- примерно 6.6% тиражей с разницей >= 10 (одно поле кучное, другое размашистое).

Подгонка best-effort: константы задают эмпирическую цель распределения,
гарантий нет.
"""
import random, time
from typing import Callable, List, Mapping, Optional, Tuple
from models import GenerationMode
from rng.mix import window_seed
from rng.result import Err, Ok, Result
from services.sample import check_window, generate_pure, generate_weighted

FIELD_SIZE = 4
FIELD_MIN, FIELD_MAX = 1, 20

CLOSE_SPREAD_DIFF = 3
REGENERATE_P = 0.3
EXTREME_P = 0.066
WIDE_SPREAD = (15, 19)
CLUSTER_SPREAD = (3, 6)
SPREAD_TOLERANCE = 2
TARGET_ATTEMPTS = 50

def spread(field: List[int]) -> int:
    return max(field) - min(field)

def _perturb(window: bytes, index: int, noise: int) -> bytes:
    buf = bytearray(window)
    buf[index % len(buf)] ^= noise & 0xFF
    return bytes(buf)

def _second_field_window(window: bytes) -> bytes:
    # второе поле - из окна, сдвинутого на половину длины: другой контекст дайджеста
    half = len(window) // 2
    return window[half:] + window[:half]

class TwoFieldShaper:

    def __init__(self, kp: float, mode: GenerationMode,
                 weights: Optional[Mapping[int, float]] = None,
                 timestamp_ms: Optional[int] = None,
                 nano_clock: Callable[[], int] = time.perf_counter_ns):
        if mode is GenerationMode.WEIGHTED and weights is None:
            raise ValueError("weighted mode needs a weight table")
        if mode is GenerationMode.HYBRID:
            raise ValueError("two-field generation supports pure and weighted modes only")
        self.kp = kp
        self.mode = mode
        self.weights = weights
        self.timestamp_ms = timestamp_ms
        self._nano_clock = nano_clock

    def field(self, window: bytes) -> Result[List[int]]:
        if self.mode is GenerationMode.PURE:
            return generate_pure(FIELD_SIZE, FIELD_MIN, FIELD_MAX, window, self.kp, self.timestamp_ms)
        return generate_weighted(FIELD_SIZE, FIELD_MIN, FIELD_MAX, window, self.kp,
                                 self.weights, self.timestamp_ms)

    def field_with_target_spread(self, target: int, window: bytes,
                                 rng: random.Random) -> Result[List[int]]:
        for attempt in range(TARGET_ATTEMPTS):
            res = self.field(_perturb(window, attempt, rng.getrandbits(8)))
            if isinstance(res, Err):
                return res
            if abs(spread(res.value) - target) <= SPREAD_TOLERANCE:
                return res
        # цель не достигнута: обычное поле из исходного окна
        return self.field(window)

    def generate(self, window: bytes) -> Result[Tuple[List[int], List[int]]]:
        short = check_window(window)
        if short is not None:
            return short

        windows = [window, _second_field_window(window)]
        fields = []
        for w in windows:
            res = self.field(w)
            if isinstance(res, Err):
                return res
            fields.append(res.value)

        if abs(spread(fields[0]) - spread(fields[1])) < CLOSE_SPREAD_DIFF:
            rng = random.Random(window_seed(window) ^ self._nano_clock())
            if rng.random() < REGENERATE_P:
                res = self.field(_perturb(windows[1], 0, rng.getrandbits(8)))
                if isinstance(res, Err):
                    return res
                fields[1] = res.value

        rng = random.Random(window_seed(window))
        if rng.random() < EXTREME_P:
            which = 1 if rng.random() < 0.5 else 0
            lo, hi = WIDE_SPREAD if rng.random() < 0.5 else CLUSTER_SPREAD
            target = rng.randint(lo, hi)
            res = self.field_with_target_spread(target, windows[which], rng)
            if isinstance(res, Err):
                return res
            fields[which] = res.value

        return Ok((fields[0], fields[1]))

def generate_two_fields(window: bytes, kp: float, mode: GenerationMode,
                        weights: Optional[Mapping[int, float]] = None,
                        timestamp_ms: Optional[int] = None) -> Result[Tuple[List[int], List[int]]]:
    return TwoFieldShaper(kp, mode, weights, timestamp_ms).generate(window)
