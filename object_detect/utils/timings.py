import time
from contextlib import contextmanager


@contextmanager
def measure_ms():
    """Yield a callable returning elapsed milliseconds, frozen once the block exits."""
    start = time.perf_counter()
    stopped: list[float] = []

    def elapsed() -> int:
        end = stopped[0] if stopped else time.perf_counter()
        return int((end - start) * 1000)

    try:
        yield elapsed
    finally:
        stopped.append(time.perf_counter())
