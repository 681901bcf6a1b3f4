import datetime as dt
import time
from enum import Enum
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

DrawSource = Literal["lottery", "imported", "generated"]

MAX_RANGE_SIZE = 10_000     # max - min + 1 для запросов генерации и анализа

def _now_ms() -> int:
    return int(time.time() * 1000)

class GenerationMode(str, Enum):
    PURE = "pure"            # чистая энтропия
    WEIGHTED = "weighted"    # калиброванная энтропия (рулетка по весам)
    HYBRID = "hybrid"

class WeightsKind(str, Enum):
    UNIFORM = "uniform"
    FREQUENCY = "frequency"
    KP = "kp"                # частоты + корреляция с текущим Kp
    COMBINED = "combined"

# ——— сущности хранилища

class HistoricalDraw(BaseModel):
    iteration: str = ""                  # номер тиража, напр. "011456"
    date: dt.date
    time: dt.time
    numbers: list[int]
    source: DrawSource = "lottery"
    lottery_type: Optional[str] = None

    # данные на момент тиража
    kp_index: Optional[float] = Field(None, ge=0, le=9)
    magnetic_field_x: Optional[float] = None   # μT
    magnetic_field_y: Optional[float] = None
    magnetic_field_z: Optional[float] = None

    created_at: int = Field(default_factory=_now_ms)

class SolarIndexSample(BaseModel):
    date: dt.date
    time: dt.time
    kp_value: float = Field(..., ge=0, le=9)
    source: str = "auto"                 # auto | manual | generation
    created_at: int = Field(default_factory=_now_ms)

# ——— HTTP

class UserEntropyIn(BaseModel):
    payload_hex: str = Field(..., description="raw bytes (hex)")

class GenerateIn(BaseModel):
    count: int = Field(6, ge=1, le=100)
    min: int = 1
    max: int = 49
    mode: GenerationMode = GenerationMode.PURE
    weights: WeightsKind = WeightsKind.FREQUENCY
    entropy_ratio: float = Field(0.5, ge=0.0, le=1.0)
    draw_id: Optional[str] = None        # если хотим SSE-прогресс
    save: bool = True                    # сохранить результат как "generated"

    @model_validator(mode="after")
    def check_range_size(self):
        # перевёрнутый диапазон отдаёт роутер (400)
        if self.max - self.min + 1 > MAX_RANGE_SIZE:
            raise ValueError(f"range [{self.min}, {self.max}] exceeds {MAX_RANGE_SIZE} numbers")
        return self

class GenerateOut(BaseModel):
    draw_id: str
    numbers: list[int]
    mode: GenerationMode
    kp: float
    kp_status: str
    weights_status: str
    window_root_hex: str

class TwoFieldsIn(BaseModel):
    mode: GenerationMode = GenerationMode.PURE
    weights: WeightsKind = WeightsKind.FREQUENCY
    draw_id: Optional[str] = None
    save: bool = True

class TwoFieldsOut(BaseModel):
    draw_id: str
    field1: list[int]
    field2: list[int]
    spread1: int
    spread2: int
    spread_diff: int
    kp: float
    kp_status: str
    weights_status: str
    window_root_hex: str
