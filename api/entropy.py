# api/entropy.py
from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse
from models import UserEntropyIn
from sources.loc_entropy import cpu_jitter_bytes

router = APIRouter()

@router.post("/entropy/offer")
async def entropy_offer(request: Request, body: UserEntropyIn = Body(...)):
    try:
        data = bytes.fromhex(body.payload_hex)
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "payload_hex must be hex"})
    if not data:
        return JSONResponse(status_code=400, content={"error": "payload is empty"})
    pool = request.app.state.pool
    pool.offer(data)
    return {"ok": True, "added_bytes": len(data), **pool.status()}

@router.post("/entropy/server-jitter")
async def entropy_server_jitter(request: Request, samples: int = 20000):
    data = cpu_jitter_bytes(samples=max(1, samples))
    pool = request.app.state.pool
    pool.offer(data)
    return {"ok": True, "added_bytes": len(data), **pool.status()}

@router.get("/entropy/status")
async def entropy_status(request: Request):
    return request.app.state.pool.status()
