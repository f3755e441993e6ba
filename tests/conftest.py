import sys
from pathlib import Path
from typing import Any, List, Tuple

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from nsevents import EventEmitter  # noqa: E402


class Recorder:
    """Collects (label, args, kwargs) for every call made through its listeners."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...], dict]] = []

    def listener(self, label: str, result: Any = None):
        def _listener(*args: Any, **kwargs: Any) -> Any:
            self.calls.append((label, args, kwargs))
            return result

        _listener.__name__ = f"listener_{label}"
        return _listener

    @property
    def labels(self) -> List[str]:
        return [label for label, _, _ in self.calls]


@pytest.fixture()
def emitter() -> EventEmitter:
    return EventEmitter()


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()
