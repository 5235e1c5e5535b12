from pydantic import BaseModel, Field


class DetectionOut(BaseModel):
    id: str
    label: str
    confidence: float = Field(ge=0.0, le=1.0)
    percent: int
    # normalized [x, y, width, height], origin bottom-left
    bbox: list[float]
    # view pixels [x, y, width, height], origin top-left
    display_bbox: list[float] | None = None


class ResultRowOut(BaseModel):
    id: str
    label: str
    percent: int


class DetectResponse(BaseModel):
    ok: bool = True
    model: str | None = None
    model_loaded: bool
    latency_ms: int | None = None
    image_width: int
    image_height: int
    display_width: float
    display_height: float
    threshold: float
    detections: list[DetectionOut]
    rows: list[ResultRowOut] = []


class SubmitResponse(BaseModel):
    ok: bool = True
    accepted: bool
    model_loaded: bool


class SessionResponse(BaseModel):
    ok: bool = True
    has_image: bool
    is_loading: bool
    image_width: int | None = None
    image_height: int | None = None
    detections: list[DetectionOut] = []
    rows: list[ResultRowOut] = []


class HealthResponse(BaseModel):
    ok: bool
    version: str
    provider: str
    model_loaded: bool
    model: str | None = None
    model_weights_path: str | None = None
    model_weights_sha256: str | None = None
    model_loaded_at: str | None = None
    uptime_s: float


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    message: str
    request_id: str | None = None
