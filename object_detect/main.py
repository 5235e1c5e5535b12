import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from object_detect.config import get_settings
from object_detect.core.detector import load_detector
from object_detect.core.errors import DetectError
from object_detect.core.geometry import convert_bounding_box
from object_detect.core.model_loader import sha256_file
from object_detect.core.postprocess import filter_detections, format_confidence, result_rows, shape_observations
from object_detect.core.session import DetectionSession
from object_detect.core.store import ResultStore
from object_detect.core.types import DetectedObject, Size
from object_detect.logging_setup import setup_logging
from object_detect.render import render_overlay, render_placeholder, to_png_bytes
from object_detect.schemas import (
    DetectResponse,
    ErrorResponse,
    HealthResponse,
    SessionResponse,
    SubmitResponse,
)
from object_detect.utils.image_io import load_image_from_bytes

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger('object_detect')

app = FastAPI(title='Object Detect', version=settings.version)
started_at = time.time()

PLACEHOLDER_SIZE = Size(width=400.0, height=400.0)


@app.on_event('startup')
async def startup_event() -> None:
    loop = asyncio.get_running_loop()
    detector = load_detector(settings)
    store = ResultStore()
    session = DetectionSession(
        detector=detector,
        store=store,
        threshold=settings.conf_threshold,
        dispatch=loop.call_soon_threadsafe,
        max_workers=settings.inference_workers,
    )
    app.state.detector = detector
    app.state.store = store
    app.state.session = session
    app.state.model_loaded = detector is not None
    model_loaded_at = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
    model_weights_path = detector.weights_path if detector else None
    model_weights_sha256 = sha256_file(model_weights_path)
    app.state.model_loaded_at = model_loaded_at if detector else None
    app.state.model_weights_path = model_weights_path
    app.state.model_weights_sha256 = model_weights_sha256
    logger.info(
        'Detector initialized provider=%s model=%s available=%s threshold=%s',
        settings.provider,
        detector.model_id if detector else None,
        detector is not None,
        settings.conf_threshold,
    )
    logger.info(
        'Model fingerprint model_weights_path=%s model_weights_sha256=%s model_loaded_at=%s',
        model_weights_path,
        model_weights_sha256,
        app.state.model_loaded_at,
    )


@app.on_event('shutdown')
def shutdown_event() -> None:
    session: DetectionSession | None = getattr(app.state, 'session', None)
    if session is not None:
        session.close()


@app.exception_handler(DetectError)
async def detect_error_handler(request: Request, exc: DetectError):
    request_id = request.headers.get('x-request-id') or str(uuid.uuid4())
    payload = ErrorResponse(
        error=exc.code,
        message=exc.message,
        request_id=request_id,
    )
    return JSONResponse(status_code=exc.status_code, content=payload.model_dump())


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    request_id = request.headers.get('x-request-id') or str(uuid.uuid4())
    logger.exception('Unhandled exception request_id=%s', request_id)
    payload = ErrorResponse(
        error='UNEXPECTED_SERVER_ERROR',
        message='Unexpected server error.',
        request_id=request_id,
    )
    return JSONResponse(status_code=500, content=payload.model_dump())


def _view_size(default: Size, display_width: float | None, display_height: float | None) -> Size:
    view_w = float(display_width) if display_width is not None else default.width
    view_h = float(display_height) if display_height is not None else default.height
    limit = settings.max_display_side
    if not (1 <= view_w <= limit and 1 <= view_h <= limit):
        raise DetectError(
            'INVALID_DISPLAY_SIZE',
            f'Display size must be between 1 and {limit} pixels per side.',
            status_code=400,
            details={'display_width': view_w, 'display_height': view_h},
        )
    return Size(width=view_w, height=view_h)


def _image_size(image) -> Size:
    width, height = image.size
    return Size(width=float(width), height=float(height))


def _default_view(image_size: Size) -> Size:
    # oversized images default to an aspect-fit view within the side limit
    limit = float(settings.max_display_side)
    scale = min(1.0, limit / image_size.width, limit / image_size.height)
    return Size(width=max(1.0, image_size.width * scale), height=max(1.0, image_size.height * scale))


def _detection_out(detected: DetectedObject, image_size: Size, view_size: Size | None) -> dict:
    display = convert_bounding_box(detected.bounding_box, image_size, view_size) if view_size else None
    return {
        'id': detected.id,
        'label': detected.label,
        'confidence': detected.confidence,
        'percent': format_confidence(detected.confidence),
        'bbox': detected.bounding_box.as_list(),
        'display_bbox': display.as_list() if display else None,
    }


async def _run_detection(image) -> tuple[list[DetectedObject], str | None, int | None]:
    detector = app.state.detector
    if detector is None:
        logger.warning('Model not loaded, returning no detections')
        return [], None, None
    try:
        result = await run_in_threadpool(detector.detect, image)
    except Exception:
        logger.exception('Detection failed model=%s', detector.model_id)
        return [], detector.model_id, None
    detected = filter_detections(shape_observations(result.observations), settings.conf_threshold)
    return detected, result.model_id, result.latency_ms


@app.get('/health', response_model=HealthResponse)
def health():
    detector = app.state.detector
    return HealthResponse(
        ok=True,
        version=settings.version,
        provider=settings.provider,
        model_loaded=bool(getattr(app.state, 'model_loaded', False)),
        model=getattr(detector, 'model_id', None),
        model_weights_path=getattr(app.state, 'model_weights_path', None),
        model_weights_sha256=getattr(app.state, 'model_weights_sha256', None),
        model_loaded_at=getattr(app.state, 'model_loaded_at', None),
        uptime_s=round(time.time() - started_at, 3),
    )


@app.post('/detect', response_model=DetectResponse)
async def detect(
    request: Request,
    image: UploadFile = File(...),
    display_width: float | None = Form(default=None),
    display_height: float | None = Form(default=None),
):
    request_id = request.headers.get('x-request-id') or str(uuid.uuid4())
    image_bytes = await image.read()
    img = load_image_from_bytes(image_bytes, settings.max_image_bytes)
    image_size = _image_size(img)
    view_size = _view_size(_default_view(image_size), display_width, display_height)

    detected, model_id, latency_ms = await _run_detection(img)

    response = DetectResponse(
        ok=True,
        model=model_id,
        model_loaded=app.state.detector is not None,
        latency_ms=latency_ms,
        image_width=img.size[0],
        image_height=img.size[1],
        display_width=view_size.width,
        display_height=view_size.height,
        threshold=settings.conf_threshold,
        detections=[_detection_out(d, image_size, view_size) for d in detected],
        rows=result_rows(detected),
    )
    logger.info(
        'detect request_id=%s bytes=%s image_size=%s view_size=%sx%s detections=%s',
        request_id,
        len(image_bytes),
        img.size,
        view_size.width,
        view_size.height,
        len(detected),
    )
    return response


@app.post('/render')
async def render(
    image: UploadFile = File(...),
    display_width: float | None = Form(default=None),
    display_height: float | None = Form(default=None),
):
    image_bytes = await image.read()
    img = load_image_from_bytes(image_bytes, settings.max_image_bytes)
    view_size = _view_size(_default_view(_image_size(img)), display_width, display_height)
    detected, _, _ = await _run_detection(img)
    overlay = render_overlay(img, detected, view_size)
    return Response(content=to_png_bytes(overlay), media_type='image/png')


@app.post('/session/image', response_model=SubmitResponse, status_code=202)
async def submit_session_image(image: UploadFile = File(...)):
    image_bytes = await image.read()
    img = load_image_from_bytes(image_bytes, settings.max_image_bytes)
    session: DetectionSession = app.state.session
    future = session.submit(img)
    return SubmitResponse(ok=True, accepted=future is not None, model_loaded=session.model_available)


@app.get('/session', response_model=SessionResponse)
def session_state(display_width: float | None = None, display_height: float | None = None):
    store: ResultStore = app.state.store
    snapshot = store.snapshot()
    current = snapshot.image
    if current is None:
        _view_size(PLACEHOLDER_SIZE, display_width, display_height)
        return SessionResponse(ok=True, has_image=False, is_loading=snapshot.is_loading)

    image_size = _image_size(current)
    view_size = _view_size(_default_view(image_size), display_width, display_height)
    detected = snapshot.detected_objects
    return SessionResponse(
        ok=True,
        has_image=True,
        is_loading=snapshot.is_loading,
        image_width=current.size[0],
        image_height=current.size[1],
        detections=[_detection_out(d, image_size, view_size) for d in detected],
        rows=result_rows(detected),
    )


@app.get('/session/overlay')
def session_overlay(display_width: float | None = None, display_height: float | None = None):
    store: ResultStore = app.state.store
    snapshot = store.snapshot()
    current = snapshot.image
    if current is None:
        view_size = _view_size(PLACEHOLDER_SIZE, display_width, display_height)
        return Response(content=to_png_bytes(render_placeholder(view_size)), media_type='image/png')

    view_size = _view_size(_default_view(_image_size(current)), display_width, display_height)
    overlay = render_overlay(current, snapshot.detected_objects, view_size)
    return Response(content=to_png_bytes(overlay), media_type='image/png')
