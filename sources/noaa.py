# sources/noaa.py
import datetime as dt
import httpx, logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple
from models import SolarIndexSample
from settings import settings

logger = logging.getLogger(__name__)

@dataclass
class KpReading:
    value: float
    status: str                      # ok | fallback
    message: str
    sample: Optional[SolarIndexSample] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

def parse_time_tag(tag: str) -> Tuple[dt.date, dt.time]:
    """Метка NOAA "2026-01-19 10:00:00" (или с 'T'); при ошибке - текущее время."""
    try:
        ts = dt.datetime.fromisoformat(tag.strip().replace("T", " ").split(".")[0])
    except (AttributeError, ValueError):
        ts = dt.datetime.now().replace(microsecond=0)
    return ts.date(), ts.time()

def _last_entry(payload: Any) -> Tuple[str, float]:
    """
    Поддерживаем оба формата продукта:
    таблица [[header...], [time_tag, Kp, ...], ...] и список объектов {"time_tag", "Kp"}.
    """
    if not isinstance(payload, list) or not payload:
        raise ValueError("empty Kp payload")
    last = payload[-1]
    if isinstance(last, dict):
        return str(last["time_tag"]), float(last["Kp"])
    if len(payload) < 2:
        raise ValueError("Kp table has no data rows")
    return str(last[0]), float(last[1])

async def fetch_current_kp(url: Optional[str] = None, timeout: Optional[float] = None,
                           transport: Optional[httpx.AsyncBaseTransport] = None) -> KpReading:
    """
    Один запрос последнего планетарного Kp.
    Любая ошибка -> запасное значение, генерация не прерывается.
    """
    url = url or settings.KP_URL
    try:
        async with httpx.AsyncClient(timeout=timeout or settings.KP_TIMEOUT_S, transport=transport,
                                     headers={"User-Agent": "kp-entropy-rng"}) as cli:
            r = await cli.get(url)
            r.raise_for_status()
            tag, value = _last_entry(r.json())
        if not 0.0 <= value <= 9.0:
            raise ValueError(f"Kp out of range: {value}")
    except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
        msg = f"Kp fetch failed ({e}); using fallback {settings.KP_FALLBACK}"
        logger.warning(msg)
        return KpReading(value=settings.KP_FALLBACK, status="fallback", message=msg)

    date, time = parse_time_tag(tag)
    sample = SolarIndexSample(date=date, time=time, kp_value=value, source="auto")
    return KpReading(value=value, status="ok", message=f"Kp {value} at {tag}", sample=sample)
