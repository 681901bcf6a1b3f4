# main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from settings import Settings, settings as default_settings

from api.entropy import router as entropy_router
from api.generate import router as generate_router
from api.stream import router as stream_router
from api.analysis import router as analysis_router
from api.history import router as history_router
from api.kp import router as kp_router
from rng.local_pool import EntropyPool
from services.collect import CollectParams
from services.draw import DrawService
from services.store import JsonStore, MemoryStore
from sources.noaa import fetch_current_kp
from sources.loc_entropy import JitterProducer

logger = logging.getLogger(__name__)

def create_app(settings: Settings | None = None, store: MemoryStore | None = None,
               kp_fetch=None) -> FastAPI:
    """
    Все коллабораторы собираются здесь и кладутся в app.state:
    пул энтропии, хранилище, сервис генерации. Глобального хендла БД нет.
    """
    s = settings or default_settings
    logging.basicConfig(level=s.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    pool = EntropyPool(s.ENTROPY_QUEUE_CAPACITY)
    store = store if store is not None else JsonStore(s.STORE_DIR)
    params = CollectParams(window_bytes=s.ENTROPY_WINDOW_BYTES,
                           deadline_s=s.COLLECT_DEADLINE_S, poll_s=s.COLLECT_POLL_S)
    draws = DrawService(pool, store, params, kp_fetch or fetch_current_kp)
    producer = JitterProducer(pool, s.SRV_JITTER_SAMPLES, s.SRV_JITTER_INTERVAL_S) if s.SRV_JITTER else None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if producer is not None:
            producer.start()
        yield
        if producer is not None:
            producer.stop()

    app = FastAPI(title="Kp Entropy RNG", lifespan=lifespan)
    app.state.settings = s
    app.state.pool = pool
    app.state.store = store
    app.state.draws = draws

    @app.get("/health")
    def health():
        return {"ok": True, "pool": pool.status()}

    app.include_router(entropy_router)   # /entropy/...
    app.include_router(generate_router)  # /generate, /generate/two-fields
    app.include_router(stream_router)    # /draws/{draw_id}/stream
    app.include_router(analysis_router)  # /analysis/...
    app.include_router(history_router)   # /history/...
    app.include_router(kp_router)        # /kp/...
    return app

app = create_app()
