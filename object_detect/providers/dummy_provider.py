import time

from object_detect.core.detector import Detector
from object_detect.core.types import Classification, DetectionResult, Observation, Rect

# Stacked boxes layout: a large base box, two boxes on top of it, and one
# standalone box on each side.
_FIXTURE = (
    ('box', 0.94, Rect(x=0.25, y=0.35, width=0.5, height=0.55)),
    ('package', 0.89, Rect(x=0.35, y=0.15, width=0.3, height=0.35)),
    ('box', 0.86, Rect(x=0.42, y=0.05, width=0.16, height=0.2)),
    ('package', 0.91, Rect(x=0.05, y=0.45, width=0.18, height=0.45)),
    ('box', 0.83, Rect(x=0.78, y=0.65, width=0.17, height=0.25)),
)


class DummyProvider(Detector):
    def __init__(self, model_id: str = 'dummy-v1', delay_ms: int = 0) -> None:
        self._model_id = model_id
        self._delay_s = max(0, int(delay_ms)) / 1000.0

    @property
    def model_id(self) -> str:
        return self._model_id

    def detect(self, image) -> DetectionResult:
        start = time.perf_counter()
        width, height = image.size
        if self._delay_s:
            time.sleep(self._delay_s)
        observations = [
            Observation(labels=[Classification(identifier=label, confidence=confidence)], bounding_box=box)
            for label, confidence, box in _FIXTURE
        ]
        latency_ms = int((time.perf_counter() - start) * 1000)
        return DetectionResult(
            observations=observations,
            model_id=self.model_id,
            latency_ms=max(latency_ms, 1),
            image_size=(width, height),
        )
