import uuid
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2

    def as_list(self) -> list[float]:
        return [self.x, self.y, self.width, self.height]


@dataclass
class Classification:
    identifier: str
    confidence: float


@dataclass
class Observation:
    # labels are ordered by descending confidence
    labels: list[Classification]
    bounding_box: Rect


@dataclass(eq=False)
class DetectedObject:
    label: str
    confidence: float
    bounding_box: Rect
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __eq__(self, other) -> bool:
        if not isinstance(other, DetectedObject):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass
class DetectionResult:
    observations: list[Observation]
    model_id: str
    latency_ms: int
    image_size: tuple[int, int]
