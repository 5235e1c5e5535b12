"""Submission glue between image sources, the detector and the result store.

Inference runs on a worker thread. The outcome is handed to ``dispatch`` so the
store is only mutated from the context that owns it (for the HTTP app that is
the event loop, via ``loop.call_soon_threadsafe``).
"""
import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from PIL import Image

from object_detect.core.detector import Detector
from object_detect.core.postprocess import filter_detections, shape_observations
from object_detect.core.store import ResultStore
from object_detect.core.types import DetectedObject
from object_detect.utils.timings import measure_ms

logger = logging.getLogger('object_detect.session')

Dispatch = Callable[[Callable[[], None]], None]


def call_inline(callback: Callable[[], None]) -> None:
    callback()


class DetectionSession:
    def __init__(
        self,
        detector: Detector | None,
        store: ResultStore,
        threshold: float,
        dispatch: Dispatch = call_inline,
        max_workers: int = 1,
    ) -> None:
        self._detector = detector
        self._store = store
        self._threshold = float(threshold)
        self._dispatch = dispatch
        self._executor = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix='inference')
        self._counter = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()

    @property
    def detector(self) -> Detector | None:
        return self._detector

    @property
    def store(self) -> ResultStore:
        return self._store

    @property
    def model_available(self) -> bool:
        return self._detector is not None

    def submit(self, image: Image.Image) -> Future | None:
        with self._lock:
            submission = next(self._counter)
            self._latest = submission

        self._store.set_image(image)
        if self._detector is None:
            logger.warning('Model not loaded, skipping detection submission=%s', submission)
            return None

        logger.info('Detection submitted submission=%s image_size=%s', submission, image.size)
        self._store.set_loading(True)
        return self._executor.submit(self._run, submission, image)

    def _is_current(self, submission: int) -> bool:
        with self._lock:
            return submission == self._latest

    def _run(self, submission: int, image: Image.Image) -> None:
        detector = self._detector
        try:
            with measure_ms() as elapsed:
                result = detector.detect(image)
                detected = filter_detections(shape_observations(result.observations), self._threshold)
        except Exception:
            logger.exception('Detection failed submission=%s', submission)
            self._hand_off(submission, lambda: self._apply_failure(submission))
            return

        logger.info(
            'Detection finished submission=%s model=%s observations=%s kept=%s threshold=%s elapsed_ms=%s',
            submission,
            result.model_id,
            len(result.observations),
            len(detected),
            self._threshold,
            elapsed(),
        )
        self._hand_off(submission, lambda: self._apply(submission, detected))

    def _hand_off(self, submission: int, callback: Callable[[], None]) -> None:
        try:
            self._dispatch(callback)
        except RuntimeError as exc:
            # owner loop already closed during shutdown
            logger.warning('Skipping outcome, owner context gone submission=%s error=%s', submission, exc)

    def _apply(self, submission: int, detected: list[DetectedObject]) -> None:
        if not self._is_current(submission):
            logger.info('Dropping superseded result submission=%s', submission)
            return
        self._store.set_loading(False)
        self._store.replace(detected)
        if not detected:
            logger.info('No objects above threshold submission=%s threshold=%s', submission, self._threshold)

    def _apply_failure(self, submission: int) -> None:
        if not self._is_current(submission):
            return
        self._store.set_loading(False)
        self._store.replace([])

    def close(self) -> None:
        self._executor.shutdown(wait=True)
