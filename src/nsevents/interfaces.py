from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable


class EventEmitterInterface(ABC):
    """Contract for objects that publish namespaced events.

    Patterns are dot-delimited namespaces: a listener on ``user`` also hears
    ``user.created`` and ``user.created.admin``, after any listener registered
    on the more specific name. Host objects normally own an
    :class:`~nsevents.emitter.EventEmitter` rather than inherit from one.
    """

    @abstractmethod
    def queue_unhandled_events(self, enable: bool = True) -> "EventEmitterInterface":
        """Queue events no listener handled and replay them to listeners added later.

        Disabling drops whatever is queued at that point.
        """
        raise NotImplementedError

    @abstractmethod
    def on(self, pattern: str, listener: Callable[..., Any]) -> "EventEmitterInterface":
        """Listen for events matching ``pattern``.

        Args:
            pattern: Namespace to listen on; ``""`` listens to everything.
            listener: Callback receiving the emitted arguments. Returning
                ``False`` removes it.
        """
        raise NotImplementedError

    @abstractmethod
    def once(self, pattern: str, listener: Callable[..., Any]) -> "EventEmitterInterface":
        """Like :meth:`on`, but the listener removes itself after its first call."""
        raise NotImplementedError

    @abstractmethod
    def emit(self, name: str, *args: Any, **kwargs: Any) -> bool:
        """Emit an event to every listener on ``name`` and its ancestors.

        Args:
            name: Complete event name.
            *args: Positional arguments passed to each listener.
            **kwargs: Keyword arguments passed to each listener.

        Returns:
            Whether any listener was reached.
        """
        raise NotImplementedError

    @abstractmethod
    def remove_listener(self, pattern: str, listener: Callable[..., Any]) -> None:
        """Remove ``listener`` from exactly ``pattern`` (not ancestors or descendants)."""
        raise NotImplementedError

    @abstractmethod
    def remove_all_listeners(self, pattern: str = "") -> None:
        """Remove every listener on ``pattern`` and below it. ``""`` removes all."""
        raise NotImplementedError
