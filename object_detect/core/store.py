import logging
import threading
from dataclasses import dataclass
from typing import Callable

from PIL import Image

from object_detect.core.types import DetectedObject

logger = logging.getLogger('object_detect.store')

Listener = Callable[['ResultStore'], None]


@dataclass(frozen=True)
class StoreSnapshot:
    image: Image.Image | None
    detected_objects: list[DetectedObject]
    is_loading: bool


class ResultStore:
    """Observable holder for the current image and its detection batch.

    Listeners are called synchronously after every change, on the thread that
    made the change.
    """

    def __init__(self) -> None:
        self._image: Image.Image | None = None
        self._detected_objects: list[DetectedObject] = []
        self._is_loading = False
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()
        self._state_lock = threading.Lock()

    @property
    def image(self) -> Image.Image | None:
        return self._image

    @property
    def detected_objects(self) -> list[DetectedObject]:
        return list(self._detected_objects)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def snapshot(self) -> StoreSnapshot:
        with self._state_lock:
            return StoreSnapshot(
                image=self._image,
                detected_objects=list(self._detected_objects),
                is_loading=self._is_loading,
            )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self)

    def set_image(self, image: Image.Image | None) -> None:
        with self._state_lock:
            self._image = image
            self._detected_objects = []
        self._notify()

    def replace(self, detected_objects: list[DetectedObject]) -> None:
        with self._state_lock:
            self._detected_objects = list(detected_objects)
        logger.debug('Result batch replaced count=%s', len(detected_objects))
        self._notify()

    def set_loading(self, is_loading: bool) -> None:
        with self._state_lock:
            if self._is_loading == is_loading:
                return
            self._is_loading = is_loading
        self._notify()
