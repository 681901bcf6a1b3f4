import asyncio
import json

from streams import StreamHub


def test_hub_delivers_events_to_subscribers():
    async def run():
        hub = StreamHub()
        sub = hub.subscribe("d1")
        connected = await sub.__anext__()
        await hub.emit("d1", {"type": "result", "numbers": [1, 2]})
        await hub.emit("other", {"type": "result"})
        event = await sub.__anext__()
        await sub.aclose()
        return connected, event, hub._subs

    connected, event, subs = asyncio.run(run())
    assert json.loads(connected[len("data: "):]) == {"type": "connected", "drawId": "d1"}
    assert json.loads(event[len("data: "):]) == {"type": "result", "numbers": [1, 2]}
    assert subs == {}
