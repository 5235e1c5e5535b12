import logging
import threading

from PIL import Image

from object_detect.core.detector import Detector
from object_detect.core.session import DetectionSession
from object_detect.core.store import ResultStore
from object_detect.core.types import Classification, DetectionResult, Observation, Rect
from object_detect.providers.dummy_provider import DummyProvider


class ScriptedDetector(Detector):
    """Returns one observation labelled with the image width, optionally blocking first."""

    def __init__(self, gates: dict[int, threading.Event] | None = None, fail: bool = False) -> None:
        self._gates = gates or {}
        self._fail = fail

    @property
    def model_id(self) -> str:
        return 'scripted'

    def detect(self, image) -> DetectionResult:
        width, height = image.size
        gate = self._gates.get(width)
        if gate is not None:
            gate.wait(timeout=5)
        if self._fail:
            raise RuntimeError('inference exploded')
        return DetectionResult(
            observations=[
                Observation(labels=[Classification(f'w{width}', 0.9)], bounding_box=Rect(0.1, 0.1, 0.5, 0.5)),
                Observation(labels=[Classification('weak', 0.05)], bounding_box=Rect(0.2, 0.2, 0.1, 0.1)),
            ],
            model_id=self.model_id,
            latency_ms=1,
            image_size=(width, height),
        )


def test_submit_replaces_batch_and_clears_loading():
    store = ResultStore()
    session = DetectionSession(DummyProvider(), store, threshold=0.1)
    try:
        future = session.submit(Image.new('RGB', (100, 50)))
        future.result(timeout=5)
    finally:
        session.close()

    assert store.image.size == (100, 50)
    assert store.is_loading is False
    assert len(store.detected_objects) == 5


def test_new_submission_discards_previous_batch():
    store = ResultStore()
    session = DetectionSession(ScriptedDetector(), store, threshold=0.1)
    try:
        session.submit(Image.new('RGB', (10, 10))).result(timeout=5)
        first_ids = {d.id for d in store.detected_objects}
        session.submit(Image.new('RGB', (20, 10))).result(timeout=5)
    finally:
        session.close()

    labels = [d.label for d in store.detected_objects]
    assert labels == ['w20']
    assert first_ids.isdisjoint({d.id for d in store.detected_objects})


def test_superseded_result_is_dropped():
    gate = threading.Event()
    store = ResultStore()
    session = DetectionSession(ScriptedDetector(gates={10: gate}), store, threshold=0.1, max_workers=2)
    try:
        slow = session.submit(Image.new('RGB', (10, 10)))
        session.submit(Image.new('RGB', (20, 10))).result(timeout=5)
        gate.set()
        slow.result(timeout=5)
    finally:
        session.close()

    assert [d.label for d in store.detected_objects] == ['w20']
    assert store.image.size == (20, 10)
    assert store.is_loading is False


def test_inference_failure_leaves_no_boxes():
    store = ResultStore()
    session = DetectionSession(ScriptedDetector(fail=True), store, threshold=0.1)
    try:
        session.submit(Image.new('RGB', (10, 10))).result(timeout=5)
    finally:
        session.close()

    assert store.image is not None
    assert store.detected_objects == []
    assert store.is_loading is False


def test_missing_model_sets_image_without_inference():
    store = ResultStore()
    session = DetectionSession(None, store, threshold=0.1)
    try:
        future = session.submit(Image.new('RGB', (10, 10)))
    finally:
        session.close()

    assert future is None
    assert session.model_available is False
    assert store.image is not None
    assert store.is_loading is False
    assert store.detected_objects == []


def test_outcome_goes_through_dispatch():
    dispatched = []

    def dispatch(callback):
        dispatched.append(callback)

    store = ResultStore()
    session = DetectionSession(ScriptedDetector(), store, threshold=0.1, dispatch=dispatch)
    try:
        session.submit(Image.new('RGB', (10, 10))).result(timeout=5)
    finally:
        session.close()

    assert store.is_loading is True
    assert store.detected_objects == []

    dispatched[0]()

    assert store.is_loading is False
    assert [d.label for d in store.detected_objects] == ['w10']


def test_closed_owner_context_skips_outcome(caplog):
    def closed_loop_dispatch(callback):
        raise RuntimeError('Event loop is closed')

    store = ResultStore()
    session = DetectionSession(ScriptedDetector(), store, threshold=0.1, dispatch=closed_loop_dispatch)
    try:
        with caplog.at_level(logging.WARNING):
            future = session.submit(Image.new('RGB', (10, 10)))
            assert future.result(timeout=5) is None
    finally:
        session.close()

    assert future.exception() is None
    assert 'owner context gone' in caplog.text
    assert store.detected_objects == []
