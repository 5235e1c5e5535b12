from object_detect.core.types import DetectedObject, Observation


def shape_observations(observations: list[Observation]) -> list[DetectedObject]:
    detected: list[DetectedObject] = []
    for observation in observations:
        if not observation.labels:
            continue
        top_label = observation.labels[0]
        detected.append(
            DetectedObject(
                label=top_label.identifier,
                confidence=float(top_label.confidence),
                bounding_box=observation.bounding_box,
            )
        )
    return detected


def filter_detections(detections: list[DetectedObject], threshold: float) -> list[DetectedObject]:
    return [d for d in detections if d.confidence > threshold]


def format_confidence(confidence: float) -> int:
    return int(confidence * 100)


def caption(detection: DetectedObject) -> str:
    return f'{detection.label} ({format_confidence(detection.confidence)}%)'


def result_rows(detections: list[DetectedObject]) -> list[dict]:
    return [
        {
            'id': d.id,
            'label': d.label.title(),
            'percent': format_confidence(d.confidence),
        }
        for d in detections
    ]
