# api/stream.py
from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from streams import hub

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

@router.get("/draws/{draw_id}/stream")
async def stream(draw_id: str):
    return StreamingResponse(hub.subscribe(draw_id), media_type="text/event-stream", headers=SSE_HEADERS)
