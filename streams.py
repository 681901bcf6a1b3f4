import asyncio, json
from typing import AsyncGenerator, Dict, List

HEARTBEAT_S = 2.0

def sse(event: dict) -> str:
    return f"data: {json.dumps(event)}\n\n"

class StreamHub:
    """Раздача событий генерации по drawId подписчикам SSE."""

    def __init__(self):
        self._subs: Dict[str, List[asyncio.Queue]] = {}

    async def subscribe(self, draw_id: str) -> AsyncGenerator[str, None]:
        q: asyncio.Queue = asyncio.Queue()
        self._subs.setdefault(draw_id, []).append(q)
        try:
            # первичное событие: клиент видит, что подключение живо
            yield sse({"type": "connected", "drawId": draw_id})
            while True:
                try:
                    event = await asyncio.wait_for(q.get(), timeout=HEARTBEAT_S)
                except asyncio.TimeoutError:
                    # пинг против буферизации прокси
                    event = {"type": "ping", "t": asyncio.get_running_loop().time()}
                yield sse(event)
        finally:
            subs = self._subs.get(draw_id) or []
            if q in subs:
                subs.remove(q)
            if not subs:
                self._subs.pop(draw_id, None)

    async def emit(self, draw_id: str, event: dict):
        for q in self._subs.get(draw_id, []):
            q.put_nowait(event)

hub = StreamHub()
