import logging
import time
from pathlib import Path

from object_detect.core.detector import Detector
from object_detect.core.errors import ModelLoadError
from object_detect.core.geometry import pixel_xyxy_to_normalized
from object_detect.core.types import Classification, DetectionResult, Observation

logger = logging.getLogger('object_detect.providers.yolo')


class YoloProvider(Detector):
    def __init__(self, model_path: str) -> None:
        try:
            from ultralytics import YOLO
        except ImportError as exc:
            raise ModelLoadError('ultralytics is required for PROVIDER=yolo. Install the yolo extra.') from exc

        self._model_path = model_path
        try:
            self._model = YOLO(model_path, task='detect')
        except Exception as exc:
            raise ModelLoadError(f'Failed to load model {model_path}: {exc}') from exc

        self._model_id = Path(model_path).stem
        logger.debug('Model classes model=%s names=%s', self._model_id, getattr(self._model, 'names', None))

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def weights_path(self) -> str | None:
        candidate = Path(self._model_path)
        if candidate.exists():
            return str(candidate.resolve())
        return None

    def detect(self, image) -> DetectionResult:
        start = time.perf_counter()
        width, height = image.size
        prediction = self._model(image, verbose=False)

        observations: list[Observation] = []
        if prediction:
            result = prediction[0]
            names = result.names
            boxes = result.boxes
            if boxes is not None:
                for cls_id, conf, xyxy in zip(boxes.cls.tolist(), boxes.conf.tolist(), boxes.xyxy.tolist()):
                    label = str(names.get(int(cls_id), int(cls_id)))
                    observations.append(
                        Observation(
                            labels=[Classification(identifier=label, confidence=float(conf))],
                            bounding_box=pixel_xyxy_to_normalized(xyxy, (width, height)),
                        )
                    )

        latency_ms = int((time.perf_counter() - start) * 1000)
        return DetectionResult(
            observations=observations,
            model_id=self.model_id,
            latency_ms=max(latency_ms, 1),
            image_size=(width, height),
        )
