class DetectError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ModelLoadError(DetectError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__('MODEL_LOAD_FAILED', message, status_code=503, details=details)
