import random
import time
from typing import Iterator, Optional
from blake3 import blake3
from cryptography.hazmat.primitives import hashes

DIGEST_BYTES = 32   # SHA-256
WINDOW_BYTES = 1024  # минимальное окно энтропии для любой генерации

def now_ms() -> int:
    return int(time.time() * 1000)

def debias(window: bytes) -> bytes:
    """
    XOR-свёртка соседних байтов: out[i] = w[2i] ^ w[2i+1].
    Нечётный хвост отбрасывается.
    """
    half = len(window) // 2
    if half == 0:
        return b""
    even = int.from_bytes(window[0:2 * half:2], "big")
    odd = int.from_bytes(window[1:2 * half:2], "big")
    return (even ^ odd).to_bytes(half, "big")

def _digest(payload: bytes, kp: float, timestamp_ms: Optional[int]) -> bytes:
    ts = now_ms() if timestamp_ms is None else timestamp_ms
    h = hashes.Hash(hashes.SHA256())
    h.update(str(ts).encode("utf-8"))
    h.update(str(kp).encode("utf-8"))
    h.update(payload)
    return h.finalize()

def pure_digest(window: bytes, kp: float, timestamp_ms: Optional[int] = None) -> bytes:
    """Чистый режим: SHA-256(время | Kp | debias(окно)); сам дайджест и есть источник чисел."""
    return _digest(debias(window), kp, timestamp_ms)

def weighted_seed(window: bytes, kp: float, timestamp_ms: Optional[int] = None) -> int:
    """Взвешенный режим: без debias, первые 8 байт SHA-256 (big-endian) -> seed."""
    return int.from_bytes(_digest(window, kp, timestamp_ms)[:8], "big")

def seeded_prng(seed: int) -> random.Random:
    # у каждого вызова генерации свой экземпляр
    return random.Random(seed)

def window_seed(window: bytes) -> int:
    return int.from_bytes(window[:8], "big")

def digest_stream(digest: bytes) -> Iterator[int]:
    """
    Поток байтов-источников: сначала сам дайджест,
    затем keyed BLAKE3(digest) поверх счётчика (LE64), 32B на шаг.
    """
    yield from digest
    key = blake3(digest).digest()
    counter = 0
    while True:
        h = blake3(key=key)
        h.update(counter.to_bytes(8, "little"))
        yield from h.digest()
        counter += 1
