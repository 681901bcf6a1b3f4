
import pytest

from rng.mix import digest_stream, pure_digest
from rng.result import Err, Failure, Ok
from services.sample import (cumulative_weights, generate_hybrid, generate_pure, generate_weighted,
                             uniform_weights, weighted_choice)
from conftest import make_window

TS = 1700000000000
CASES = [(1, 1, 1), (1, 10, 3), (1, 20, 8), (1, 49, 6), (0, 99, 10), (5, 9, 5), (-10, 10, 7)]


class FixedRng:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def _check(numbers, count, lo, hi):
    assert len(numbers) == count
    assert len(set(numbers)) == count
    assert numbers == sorted(numbers)
    assert all(lo <= n <= hi for n in numbers)


@pytest.mark.parametrize("lo,hi,count", CASES)
@pytest.mark.parametrize("seed", [0, 1, 2])
def test_pure_returns_sorted_unique_in_range(lo, hi, count, seed):
    res = generate_pure(count, lo, hi, make_window(seed), 2.0)
    assert isinstance(res, Ok)
    _check(res.value, count, lo, hi)


@pytest.mark.parametrize("lo,hi,count", CASES)
@pytest.mark.parametrize("seed", [0, 1, 2])
def test_weighted_returns_sorted_unique_in_range(lo, hi, count, seed):
    res = generate_weighted(count, lo, hi, make_window(seed), 2.0, uniform_weights(lo, hi))
    assert isinstance(res, Ok)
    _check(res.value, count, lo, hi)


@pytest.mark.parametrize("lo,hi,count", CASES)
def test_hybrid_returns_sorted_unique_in_range(lo, hi, count):
    res = generate_hybrid(count, lo, hi, make_window(5), 4.0, uniform_weights(lo, hi))
    assert isinstance(res, Ok)
    _check(res.value, count, lo, hi)


def test_pure_full_range_is_reachable():
    res = generate_pure(20, 1, 20, make_window(9), 1.0)
    assert isinstance(res, Ok)
    assert res.value == list(range(1, 21))


def test_pure_maps_digest_bytes_modulo_range():
    w = make_window(11)
    stream = digest_stream(pure_digest(w, 5.0, TS))
    expected = set()
    for b in stream:
        expected.add(10 + b % 40)
        if len(expected) == 5:
            break
    res = generate_pure(5, 10, 49, w, 5.0, timestamp_ms=TS)
    assert res == Ok(sorted(expected))


def test_same_context_gives_same_numbers():
    w = make_window(12)
    assert generate_pure(6, 1, 49, w, 1.0, TS) == generate_pure(6, 1, 49, w, 1.0, TS)
    weights = uniform_weights(1, 49)
    assert generate_weighted(6, 1, 49, w, 1.0, weights, TS) == generate_weighted(6, 1, 49, w, 1.0, weights, TS)


@pytest.mark.parametrize("gen", ["pure", "weighted", "hybrid"])
def test_count_larger_than_range_fails_before_hashing(gen, monkeypatch):
    import services.sample as sample

    def boom(*a, **kw):
        raise AssertionError("entropy consumed")

    monkeypatch.setattr(sample, "pure_digest", boom)
    monkeypatch.setattr(sample, "weighted_seed", boom)
    if gen == "pure":
        res = generate_pure(11, 1, 10, b"", 0.0)
    elif gen == "weighted":
        res = generate_weighted(11, 1, 10, b"", 0.0, {})
    else:
        res = generate_hybrid(11, 1, 10, b"", 0.0, {})
    assert isinstance(res, Err)
    assert res.reason is Failure.INSUFFICIENT_RANGE


def test_pure_attempt_budget_exhausted():
    # байт < 256: в диапазоне из 300 чисел больше 256 уникальных не набрать
    res = generate_pure(257, 0, 299, make_window(1), 0.0)
    assert isinstance(res, Err)
    assert res.reason is Failure.INSUFFICIENT_ENTROPY


def test_weighted_concentrated_table():
    weights = {n: 0.0 for n in range(1, 11)}
    weights[7] = 1.0
    res = generate_weighted(1, 1, 10, make_window(3), 0.0, weights)
    assert res == Ok([7])


def test_weighted_budget_exhausted_when_weights_too_narrow():
    weights = {n: 0.0 for n in range(1, 11)}
    weights[3] = weights[4] = 0.5
    res = generate_weighted(4, 1, 10, make_window(3), 0.0, weights)
    assert isinstance(res, Err)
    assert res.reason is Failure.INSUFFICIENT_ENTROPY


def test_roulette_uses_actual_cumulative_total():
    # сумма весов 4.0, r = 0.5 * 4.0 = 2.0 -> второе число
    assert weighted_choice(FixedRng(0.5), 1, 3, {1: 1.0, 2: 1.0, 3: 2.0}) == 2
    assert weighted_choice(FixedRng(0.5), 1, 3, {1: 0.25, 2: 0.25, 3: 0.5}) == 2
    assert weighted_choice(FixedRng(0.99), 1, 3, {1: 0.25, 2: 0.25, 3: 0.5}) == 3


def test_roulette_missing_entries_use_uniform_weight():
    # 1 и 2 отсутствуют -> по 1/3; r = 0.4 * (1/3 + 1/3 + 1/3) -> 2
    assert weighted_choice(FixedRng(0.4), 1, 3, {3: 1 / 3}) == 2


def test_roulette_falls_back_to_max():
    assert weighted_choice(FixedRng(0.5), 1, 3, {1: float("nan"), 2: 0.1, 3: 0.1}) == 3


def test_weighted_mode_follows_the_table():
    weights = {n: 0.001 for n in range(1, 51)}
    weights[13] = 10.0
    hits = 0
    for seed in range(40):
        res = generate_weighted(1, 1, 50, make_window(seed), 0.0, weights)
        hits += res.value == [13]
    assert hits > 30


@pytest.mark.parametrize("ratio", [0.0, 0.25, 0.5, 1.0])
def test_hybrid_ratios(ratio):
    res = generate_hybrid(8, 1, 20, make_window(21), 3.0, uniform_weights(1, 20), entropy_ratio=ratio)
    assert isinstance(res, Ok)
    _check(res.value, 8, 1, 20)


def test_uniform_weights():
    w = uniform_weights(1, 4)
    assert w == {1: 0.25, 2: 0.25, 3: 0.25, 4: 0.25}
    assert sum(uniform_weights(1, 49).values()) == pytest.approx(1.0)


@pytest.mark.parametrize("size", [0, 2, 1023])
def test_short_window_is_rejected(size):
    w = make_window(4, size)
    for res in (generate_pure(3, 1, 10, w, 0.0),
                generate_weighted(3, 1, 10, w, 0.0, uniform_weights(1, 10)),
                generate_hybrid(3, 1, 10, w, 0.0, uniform_weights(1, 10))):
        assert isinstance(res, Err)
        assert res.reason is Failure.INSUFFICIENT_ENTROPY


def _pure_pick(w):
    return generate_pure(1, 1, 10, w, 0.0, TS).value[0]


def test_hybrid_topup_fills_overlap(monkeypatch):
    import services.sample as sample

    w = make_window(8)
    p = _pure_pick(w)
    q = 1 if p != 1 else 2
    weights = {n: 0.0 for n in range(1, 11)}
    weights[p] = weights[q] = 1.0
    # взвешенная часть совпадает с чистой: добирать приходится top-up
    calls = []

    def overlapping(*a, **kw):
        calls.append(a)
        return Ok([p])

    monkeypatch.setattr(sample, "generate_weighted", overlapping)
    res = generate_hybrid(2, 1, 10, w, 0.0, weights, entropy_ratio=0.5, timestamp_ms=TS)
    assert len(calls) == 1
    assert res == Ok(sorted([p, q]))


def test_hybrid_topup_budget_exhausted(monkeypatch):
    import services.sample as sample

    w = make_window(8)
    p = _pure_pick(w)
    q = 1 if p != 1 else 2
    weights = {n: 0.0 for n in range(1, 11)}
    weights[p] = weights[q] = 1.0
    monkeypatch.setattr(sample, "generate_weighted", lambda *a, **kw: Ok([p, q]))
    # третьего числа с ненулевым весом нет
    res = generate_hybrid(3, 1, 10, w, 0.0, weights, entropy_ratio=0.5, timestamp_ms=TS)
    assert isinstance(res, Err)
    assert res.reason is Failure.INSUFFICIENT_ENTROPY
    assert "after 300 draws" in res.message


def test_hybrid_weights_only_too_narrow():
    weights = {n: 0.0 for n in range(1, 11)}
    weights[3] = weights[4] = 0.5
    res = generate_hybrid(4, 1, 10, make_window(3), 0.0, weights, entropy_ratio=0.0)
    assert isinstance(res, Err)
    assert res.reason is Failure.INSUFFICIENT_ENTROPY


def test_cumulative_table_built_once_per_call(monkeypatch):
    import services.sample as sample

    built = []
    real = sample.cumulative_weights

    def counting(lo, hi, weights):
        built.append((lo, hi))
        return real(lo, hi, weights)

    monkeypatch.setattr(sample, "cumulative_weights", counting)
    res = generate_weighted(50, 1, 100, make_window(6), 0.0, uniform_weights(1, 100))
    assert isinstance(res, Ok)
    assert built == [(1, 100)]


def test_roulette_with_prebuilt_table_matches():
    weights = {1: 0.1, 2: 0.6, 3: 0.3}
    table = cumulative_weights(1, 3, weights)
    for v in (0.0, 0.05, 0.1, 0.5, 0.7, 0.71, 0.999):
        assert weighted_choice(FixedRng(v), 1, 3, weights, table) == weighted_choice(FixedRng(v), 1, 3, weights)
