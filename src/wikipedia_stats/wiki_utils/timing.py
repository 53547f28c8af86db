import time
from dataclasses import dataclass
from typing import Any, Callable, Tuple, TypeVar

T = TypeVar('T')


@dataclass(frozen=True)
class Timing:
    label: str
    duration_ms: float

    def __str__(self) -> str:
        return f"Processing {self.label} took {self.duration_ms:.0f} ms."


def timed(label: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> Tuple[T, Timing]:
    """
    Call ``func`` and measure its wall-clock duration.

    The caller owns the returned Timing; nothing is accumulated globally.
    """
    start = time.perf_counter()
    result = func(*args, **kwargs)
    elapsed = (time.perf_counter() - start) * 1000.0
    return result, Timing(label, elapsed)
