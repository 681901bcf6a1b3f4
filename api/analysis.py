# api/analysis.py
from dataclasses import asdict
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from models import MAX_RANGE_SIZE, WeightsKind

router = APIRouter()

def _bad_range(lo: int, hi: int):
    if lo > hi:
        return JSONResponse(status_code=400, content={"error": "min must be <= max"})
    if hi - lo + 1 > MAX_RANGE_SIZE:
        return JSONResponse(status_code=400, content={"error": f"range exceeds {MAX_RANGE_SIZE} numbers"})
    return None

@router.get("/analysis/weights")
async def analysis_weights(request: Request, min: int = 1, max: int = 49,
                           kind: WeightsKind = WeightsKind.FREQUENCY, current_kp: float | None = None):
    bad = _bad_range(min, max)
    if bad is not None:
        return bad
    service = request.app.state.draws
    analysis = service.analyzer.analyze(min, max)
    kp = current_kp
    if kind is WeightsKind.KP and kp is None:
        kp = (await service.current_kp()).value
    weights, status = service.select_weights(kind, min, max, kp if kp is not None else 0.0)
    return {
        "kind": kind.value,
        "status": status,
        "message": analysis.message,
        "totalDraws": analysis.total_draws,
        "frequencies": analysis.frequencies,
        "topNumbers": [[n, w] for n, w in analysis.top_numbers],
        "currentKp": kp,
        "weights": weights,
    }

@router.get("/analysis/solar-correlation")
async def analysis_solar_correlation(request: Request, min: int = 1, max: int = 49):
    bad = _bad_range(min, max)
    if bad is not None:
        return bad
    corr = request.app.state.draws.analyzer.solar_correlation(min, max)
    return {"avgKpPerNumber": corr, "numbers": len(corr)}

@router.get("/analysis/stats")
async def analysis_stats(request: Request):
    return asdict(request.app.state.draws.analyzer.stats())
