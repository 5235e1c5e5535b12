import logging
from abc import ABC, abstractmethod

from object_detect.config import Settings
from object_detect.core.errors import ModelLoadError
from object_detect.core.types import DetectionResult

logger = logging.getLogger('object_detect.detector')


class Detector(ABC):
    @abstractmethod
    def detect(self, image) -> DetectionResult:
        raise NotImplementedError

    @property
    @abstractmethod
    def model_id(self) -> str:
        raise NotImplementedError

    @property
    def weights_path(self) -> str | None:
        return None


def create_detector(settings: Settings) -> Detector:
    provider = settings.provider.strip().lower()
    if provider == 'dummy':
        from object_detect.providers.dummy_provider import DummyProvider

        return DummyProvider(model_id='dummy-v1', delay_ms=settings.dummy_delay_ms)
    if provider == 'yolo':
        from object_detect.core.model_loader import resolve_model_path
        from object_detect.providers.yolo_provider import YoloProvider

        model_path = resolve_model_path(settings.model_dir, settings.model_name)
        if model_path is None:
            raise ModelLoadError(f'Model {settings.model_name!r} not found in {settings.model_dir!r}')
        return YoloProvider(model_path=str(model_path))
    raise ValueError(f'Unsupported PROVIDER={settings.provider!r}')


def load_detector(settings: Settings) -> Detector | None:
    """Build the configured detector, or None when the model cannot be loaded.

    A missing or broken model leaves detection unavailable for the lifetime of
    the process; callers treat None as "no results".
    """
    try:
        return create_detector(settings)
    except ModelLoadError as exc:
        logger.error('Failed to load model provider=%s error=%s', settings.provider, exc.message)
        return None
