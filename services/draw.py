# services/draw.py
import datetime as dt
import logging
from typing import Awaitable, Callable, Mapping, Optional, Tuple
from fastapi.concurrency import run_in_threadpool
from models import (GenerateIn, GenerateOut, GenerationMode, HistoricalDraw, SolarIndexSample,
                    TwoFieldsIn, TwoFieldsOut, WeightsKind)
from rng.local_pool import EntropyPool, root_hex
from rng.result import Err, Ok, Result, insufficient_range
from services.collect import CollectParams, EntropyCollector
from services.sample import generate_hybrid, generate_pure, generate_weighted, uniform_weights
from services.shaper import generate_two_fields, spread
from services.store import MemoryStore
from services.weights import WeightAnalyzer
from sources.noaa import KpReading, fetch_current_kp
from streams import hub

logger = logging.getLogger(__name__)

KpFetcher = Callable[[], Awaitable[KpReading]]

class DrawService:
    """
    Вызывающая сторона движка: окно -> Kp -> веса -> генерация -> (опционально) сохранение.
    Сохраняет результат она, а не генераторы.
    """

    def __init__(self, pool: EntropyPool, store: MemoryStore,
                 params: Optional[CollectParams] = None,
                 kp_fetch: KpFetcher = fetch_current_kp):
        self.pool = pool
        self.store = store
        self.collector = EntropyCollector(pool, params)
        self.analyzer = WeightAnalyzer(store)
        self._kp_fetch = kp_fetch

    async def current_kp(self) -> KpReading:
        reading = await self._kp_fetch()
        if reading.ok and reading.sample is not None:
            self.store.add_kp(reading.sample)
        return reading

    def select_weights(self, kind: WeightsKind, lo: int, hi: int, kp: float) -> Tuple[Mapping[int, float], str]:
        if kind is WeightsKind.UNIFORM:
            return uniform_weights(lo, hi), "uniform"
        analysis = self.analyzer.analyze(lo, hi)
        if analysis.status == "empty":
            return analysis.weights, "empty"
        if kind is WeightsKind.KP:
            return self.analyzer.kp_adjusted_weights(lo, hi, kp), "kp"
        if kind is WeightsKind.COMBINED:
            return self.analyzer.combined_weights(lo, hi), "combined"
        return analysis.weights, "frequency"

    async def _collect(self, draw_id: str) -> Result[bytes]:
        p = self.collector.params
        await hub.emit(draw_id, {"type": "collect.open", "drawId": draw_id,
                                 "deadlineMs": int(p.deadline_s * 1000), "bytes": p.window_bytes})
        res = await run_in_threadpool(self.collector.collect)
        if isinstance(res, Err):
            await hub.emit(draw_id, {"type": "error", "drawId": draw_id, "stage": "collect",
                                     "reason": res.reason.value, "message": res.message})
            return res
        await hub.emit(draw_id, {"type": "collect.close", "drawId": draw_id,
                                 "bytes": len(res.value), "rootHex": root_hex(res.value)})
        return res

    async def _prepare(self, draw_id: str, mode: GenerationMode, kind: WeightsKind, lo: int, hi: int):
        window = await self._collect(draw_id)
        if isinstance(window, Err):
            return window, None, None, None

        kp = await self.current_kp()
        await hub.emit(draw_id, {"type": "kp", "drawId": draw_id, "value": kp.value,
                                 "status": kp.status, "message": kp.message})

        if mode is GenerationMode.PURE:
            weights, weights_status = None, "unused"
        else:
            weights, weights_status = await run_in_threadpool(self.select_weights, kind, lo, hi, kp.value)
        await hub.emit(draw_id, {"type": "weights", "drawId": draw_id, "status": weights_status})
        return window, kp, weights, weights_status

    def _save(self, numbers: list[int], kp: KpReading, lottery_type: Optional[str] = None) -> None:
        now = dt.datetime.now().replace(microsecond=0)
        self.store.add_draw(HistoricalDraw(date=now.date(), time=now.time(), numbers=numbers,
                                           source="generated", lottery_type=lottery_type,
                                           kp_index=kp.value if kp.ok else None))
        if kp.ok:
            self.store.add_kp(SolarIndexSample(date=now.date(), time=now.time(),
                                               kp_value=kp.value, source="generation"))

    async def _fail(self, draw_id: str, err: Err) -> Err:
        logger.warning("[%s] generation failed: %s", draw_id, err.message)
        await hub.emit(draw_id, {"type": "error", "drawId": draw_id, "stage": "generate",
                                 "reason": err.reason.value, "message": err.message})
        return err

    async def generate(self, draw_id: str, body: GenerateIn) -> Result[GenerateOut]:
        lo, hi = body.min, body.max
        # диапазон проверяем до сбора энтропии
        if body.count > hi - lo + 1:
            return await self._fail(draw_id, insufficient_range(body.count, lo, hi))

        window, kp, weights, weights_status = await self._prepare(draw_id, body.mode, body.weights, lo, hi)
        if isinstance(window, Err):
            return window

        if body.mode is GenerationMode.PURE:
            res = await run_in_threadpool(generate_pure, body.count, lo, hi, window.value, kp.value)
        elif body.mode is GenerationMode.WEIGHTED:
            res = await run_in_threadpool(generate_weighted, body.count, lo, hi, window.value, kp.value, weights)
        else:
            res = await run_in_threadpool(generate_hybrid, body.count, lo, hi, window.value, kp.value,
                                          weights, body.entropy_ratio)
        if isinstance(res, Err):
            return await self._fail(draw_id, res)

        if body.save:
            self._save(res.value, kp)
        out = GenerateOut(draw_id=draw_id, numbers=res.value, mode=body.mode, kp=kp.value,
                          kp_status=kp.status, weights_status=weights_status,
                          window_root_hex=root_hex(window.value))
        await hub.emit(draw_id, {"type": "result", "drawId": draw_id, "numbers": out.numbers})
        logger.info("[%s] %s -> %s (kp=%s, %s)", draw_id, body.mode.value, out.numbers, kp.value, kp.status)
        return Ok(out)

    async def generate_two_fields(self, draw_id: str, body: TwoFieldsIn) -> Result[TwoFieldsOut]:
        if body.mode is GenerationMode.HYBRID:
            raise ValueError("two-field generation supports pure and weighted modes only")

        window, kp, weights, weights_status = await self._prepare(draw_id, body.mode, body.weights, 1, 20)
        if isinstance(window, Err):
            return window

        res = await run_in_threadpool(generate_two_fields, window.value, kp.value, body.mode, weights)
        if isinstance(res, Err):
            return await self._fail(draw_id, res)

        f1, f2 = res.value
        if body.save:
            self._save(f1 + f2, kp, lottery_type="two-fields")
        out = TwoFieldsOut(draw_id=draw_id, field1=f1, field2=f2, spread1=spread(f1), spread2=spread(f2),
                           spread_diff=abs(spread(f1) - spread(f2)), kp=kp.value, kp_status=kp.status,
                           weights_status=weights_status, window_root_hex=root_hex(window.value))
        await hub.emit(draw_id, {"type": "result", "drawId": draw_id, "field1": f1, "field2": f2})
        return Ok(out)
