# services/sample.py
from __future__ import annotations
import math
import random
from bisect import bisect_left
from typing import List, Mapping, Optional
from rng.mix import WINDOW_BYTES, digest_stream, pure_digest, seeded_prng, weighted_seed, window_seed
from rng.result import Err, Ok, Result, insufficient_entropy, insufficient_range

PURE_ATTEMPTS_PER_BYTE = 100    # бюджет чистого режима: 100 × длина дайджеста
WEIGHTED_ATTEMPTS_PER_NUMBER = 100
DEFAULT_ENTROPY_RATIO = 0.5

def uniform_weights(lo: int, hi: int) -> dict[int, float]:
    """Равномерная таблица: запасной вариант, когда анализ не проводился."""
    w = 1.0 / (hi - lo + 1)
    return {n: w for n in range(lo, hi + 1)}

def _range_size(lo: int, hi: int) -> int:
    return hi - lo + 1

def check_window(window: bytes) -> Optional[Err]:
    if len(window) < WINDOW_BYTES:
        return insufficient_entropy(f"window too short: {len(window)} < {WINDOW_BYTES} bytes")
    return None

def generate_pure(count: int, lo: int, hi: int, window: bytes, kp: float,
                  timestamp_ms: Optional[int] = None) -> Result[List[int]]:
    """
    Уникальные числа из дайджеста: lo + (byte_i mod R).
    Проверка диапазона - до любого хеширования.
    """
    R = _range_size(lo, hi)
    if count > R or R <= 0:
        return insufficient_range(count, lo, hi)
    short = check_window(window)
    if short is not None:
        return short

    digest = pure_digest(window, kp, timestamp_ms)
    stream = digest_stream(digest)
    budget = PURE_ATTEMPTS_PER_BYTE * len(digest)

    unique: set[int] = set()
    attempts = 0
    while len(unique) < count:
        if attempts >= budget:
            return insufficient_entropy(f"pure: {len(unique)}/{count} unique after {attempts} draws")
        unique.add(lo + next(stream) % R)
        attempts += 1

    return Ok(sorted(unique))

def cumulative_weights(lo: int, hi: int, weights: Mapping[int, float]) -> List[float]:
    """Кумулятивные веса по [lo, hi] по возрастанию; отсутствующие числа - 1/R."""
    fallback = 1.0 / _range_size(lo, hi)
    cumulative: List[float] = []
    total = 0.0
    for n in range(lo, hi + 1):
        total += weights.get(n, fallback)
        cumulative.append(total)
    return cumulative

def weighted_choice(rng: random.Random, lo: int, hi: int, weights: Mapping[int, float],
                    cumulative: Optional[List[float]] = None) -> int:
    """
    Рулетка: первое число, чей кумулятивный вес >= r.
    r берётся от фактической суммы, а не от 1.0.
    """
    if cumulative is None:
        cumulative = cumulative_weights(lo, hi, weights)
    total = cumulative[-1]
    if math.isnan(total):
        return hi
    i = bisect_left(cumulative, rng.random() * total)
    # край плавающей точки
    return lo + i if i < len(cumulative) else hi

def _draw_unique(rng: random.Random, count: int, lo: int, hi: int,
                 weights: Mapping[int, float], unique: set[int]) -> Result[set[int]]:
    # таблица за вызов не меняется: кумулятивный список строим один раз
    cumulative = cumulative_weights(lo, hi, weights)
    budget = count * WEIGHTED_ATTEMPTS_PER_NUMBER
    attempts = 0
    while len(unique) < count:
        if attempts >= budget:
            return insufficient_entropy(f"weighted: {len(unique)}/{count} unique after {attempts} draws")
        unique.add(weighted_choice(rng, lo, hi, weights, cumulative))
        attempts += 1
    return Ok(unique)

def generate_weighted(count: int, lo: int, hi: int, window: bytes, kp: float,
                      weights: Mapping[int, float],
                      timestamp_ms: Optional[int] = None) -> Result[List[int]]:
    R = _range_size(lo, hi)
    if count > R or R <= 0:
        return insufficient_range(count, lo, hi)
    short = check_window(window)
    if short is not None:
        return short

    rng = seeded_prng(weighted_seed(window, kp, timestamp_ms))
    res = _draw_unique(rng, count, lo, hi, weights, set())
    if isinstance(res, Err):
        return res
    return Ok(sorted(res.value))

def generate_hybrid(count: int, lo: int, hi: int, window: bytes, kp: float,
                    weights: Mapping[int, float],
                    entropy_ratio: float = DEFAULT_ENTROPY_RATIO,
                    timestamp_ms: Optional[int] = None) -> Result[List[int]]:
    """
    Часть чисел - чистой энтропией, остаток - по весам.
    entropy_ratio: 0.0 = только веса, 1.0 = только энтропия.
    Пересечения добиваются дополнительными взвешенными выборками.
    """
    R = _range_size(lo, hi)
    if count > R or R <= 0:
        return insufficient_range(count, lo, hi)
    short = check_window(window)
    if short is not None:
        return short

    ratio = min(1.0, max(0.0, float(entropy_ratio)))
    pure_count = int(count * ratio)
    weighted_count = count - pure_count

    combined: set[int] = set()
    if pure_count > 0:
        res = generate_pure(pure_count, lo, hi, window, kp, timestamp_ms)
        if isinstance(res, Err):
            return res
        combined.update(res.value)
    if weighted_count > 0:
        res = generate_weighted(weighted_count, lo, hi, window, kp, weights, timestamp_ms)
        if isinstance(res, Err):
            return res
        combined.update(res.value)

    topup = _draw_unique(seeded_prng(window_seed(window)), count, lo, hi, weights, combined)
    if isinstance(topup, Err):
        return topup
    return Ok(sorted(topup.value))
