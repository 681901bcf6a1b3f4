# api/kp.py
import datetime as dt
from typing import Optional
from fastapi import APIRouter, Request

router = APIRouter()

@router.post("/kp/fetch")
async def kp_fetch(request: Request):
    # при ошибке сети - 200 с fallback-значением и статусом
    reading = await request.app.state.draws.current_kp()
    return {"value": reading.value, "status": reading.status, "message": reading.message,
            "sample": reading.sample}

@router.get("/kp/stats")
async def kp_stats(request: Request, start: Optional[dt.date] = None, end: Optional[dt.date] = None):
    store = request.app.state.store
    latest = store.kp_latest()
    out = {
        "totalRecords": store.kp_count(),
        "averageKp": store.kp_average() or 0.0,
        "latestKp": latest.kp_value if latest else None,
        "latestDate": latest.date if latest else None,
        "latestTime": latest.time if latest else None,
    }
    if start and end:
        out["averageKpInRange"] = store.kp_average_in_range(start, end)
    return out
