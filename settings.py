from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # окно энтропии и очередь чанков
    ENTROPY_WINDOW_BYTES: int = Field(1024, ge=1024)
    ENTROPY_QUEUE_CAPACITY: int = 100     # при переполнении выбрасываем самые старые чанки

    # сбор окна: опрос очереди и жёсткий дедлайн
    COLLECT_POLL_S: float = 0.1
    COLLECT_DEADLINE_S: float = 5.0

    # серверный источник шума (джиттер CPU)
    SRV_JITTER: bool = True
    SRV_JITTER_SAMPLES: int = 2048
    SRV_JITTER_INTERVAL_S: float = 0.05

    # планетарный Kp-индекс NOAA
    KP_URL: str = "https://services.swpc.noaa.gov/products/noaa-planetary-k-index.json"
    KP_TIMEOUT_S: float = 10.0
    KP_FALLBACK: float = 0.0

    STORE_DIR: str = "./storage"
    LOG_LEVEL: str = "INFO"

settings = Settings()
