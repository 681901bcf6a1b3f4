# rng/result.py
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")

class Failure(str, Enum):
    INSUFFICIENT_ENTROPY = "insufficient_entropy"   # окно не набрано / исчерпан бюджет попыток
    INSUFFICIENT_RANGE = "insufficient_range"       # count больше размера диапазона

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

@dataclass(frozen=True)
class Err:
    reason: Failure
    message: str

Result = Union[Ok[T], Err]

def insufficient_entropy(message: str) -> Err:
    return Err(Failure.INSUFFICIENT_ENTROPY, message)

def insufficient_range(count: int, lo: int, hi: int) -> Err:
    return Err(Failure.INSUFFICIENT_RANGE,
               f"cannot draw {count} unique numbers from [{lo}, {hi}]")
