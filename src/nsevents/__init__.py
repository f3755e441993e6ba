"""
Namespaced in-process event emitter.

Listeners registered on ``user`` hear ``user``, ``user.created`` and every
other descendant, after the listeners registered on the more specific names.
"""

from importlib.metadata import PackageNotFoundError, version

from .config import EmitterConfig
from .emitter import EventEmitter, PendingEvent, Subscription
from .errors import ConfigError, EventsError
from .interfaces import EventEmitterInterface
from .logging_config import configure_logging
from .trie import normalize_path

__all__ = [
    "ConfigError",
    "EmitterConfig",
    "EventEmitter",
    "EventEmitterInterface",
    "EventsError",
    "PendingEvent",
    "Subscription",
    "__version__",
    "configure_logging",
    "normalize_path",
]

try:
    __version__ = version("nsevents")
except PackageNotFoundError:  # pragma: no cover - during tests without packaging
    __version__ = "0.0.0"
