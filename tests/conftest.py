import datetime as dt
import random

import pytest

from models import HistoricalDraw, SolarIndexSample
from services.store import MemoryStore
from sources.noaa import KpReading


def make_window(seed: int = 0, size: int = 1024) -> bytes:
    return random.Random(seed).randbytes(size)


def make_draw(numbers, day="2025-03-01", at="20:00:00", source="lottery"):
    return HistoricalDraw(date=dt.date.fromisoformat(day), time=dt.time.fromisoformat(at),
                          numbers=list(numbers), source=source)


def make_kp(value, day="2025-03-01", at="20:00:00"):
    return SolarIndexSample(date=dt.date.fromisoformat(day), time=dt.time.fromisoformat(at), kp_value=value)


@pytest.fixture
def window():
    return make_window(42)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def fixed_kp():
    async def fetch():
        return KpReading(value=3.0, status="ok", message="fixed", sample=make_kp(3.0, at="12:00:00"))
    return fetch


@pytest.fixture
def offline_kp():
    async def fetch():
        return KpReading(value=0.0, status="fallback", message="offline")
    return fetch
