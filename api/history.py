# api/history.py
from typing import List, Optional
from fastapi import APIRouter, Body, Request
from models import DrawSource, HistoricalDraw, SolarIndexSample

router = APIRouter()

@router.get("/history/draws")
async def history_draws(request: Request, source: Optional[DrawSource] = None,
                        limit: int = 50, offset: int = 0):
    store = request.app.state.store
    items = store.list_draws([source] if source else None)
    return {"total": len(items), "items": items[offset:offset + limit]}

@router.post("/history/draws")
async def history_add_draws(request: Request, draws: List[HistoricalDraw] = Body(...)):
    store = request.app.state.store
    store.add_draws(draws)
    return {"ok": True, "added": len(draws), "total": store.count()}

@router.get("/history/kp")
async def history_kp(request: Request, limit: int = 100):
    samples = request.app.state.store.kp_samples()
    return {"total": len(samples), "items": samples[-limit:] if limit > 0 else []}

@router.post("/history/kp")
async def history_add_kp(request: Request, samples: List[SolarIndexSample] = Body(...)):
    store = request.app.state.store
    for s in samples:
        store.add_kp(s)
    return {"ok": True, "added": len(samples), "total": store.kp_count()}
