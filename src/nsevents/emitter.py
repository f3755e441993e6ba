from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from .config import EmitterConfig
from .interfaces import EventEmitterInterface
from .trie import Listener, NamespaceTree, Node, normalize_path

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _describe(callback: Callable[..., Any]) -> str:
    return getattr(callback, "__qualname__", None) or getattr(callback, "__name__", str(callback))


@dataclass(eq=False)
class PendingEvent:
    """An emitted event that no listener handled, kept for later replay.

    Compared by identity, so two queued events with the same name and
    arguments stay independent entries.
    """

    name: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)


class Subscription:
    """Handle for one registration made through :meth:`EventEmitter.subscribe`.

    Cancelling removes exactly this registration, even when the same callback
    is registered several times on the same pattern. Usable as a context
    manager that cancels on exit.
    """

    def __init__(self, emitter: "EventEmitter", path: Sequence[str], record: Listener) -> None:
        self._emitter = emitter
        self._path = list(path)
        self._record = record

    @property
    def pattern(self) -> str:
        return ".".join(self._path)

    @property
    def listener(self) -> Callable[..., Any]:
        return self._record.callback

    @property
    def once(self) -> bool:
        return self._record.once

    @property
    def active(self) -> bool:
        """False once cancelled, fired (for ``once``), or cleared by removal."""
        return self._emitter._is_registered(self._path, self._record)

    def cancel(self) -> bool:
        """Remove the registration. Returns False if it was already gone."""
        return self._emitter._remove_record(self._path, self._record)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cancel()

    def __repr__(self) -> str:
        return f"Subscription(pattern={self.pattern!r}, listener={_describe(self.listener)}, once={self.once})"


class EventEmitter(EventEmitterInterface):
    """Synchronous publish/subscribe over dot-delimited namespaces.

    Emitting ``user.created`` calls the listeners registered on
    ``user.created`` first, then those on ``user``, then the catch-all
    listeners registered on ``""``. Within one namespace listeners run in
    registration order.

    Every public method holds a re-entrant lock for its whole duration, so an
    instance may be shared between threads and listeners may call back into
    the emitter that is invoking them.
    """

    def __init__(self, queue_unhandled: bool = False, max_pending: Optional[int] = None) -> None:
        self._tree = NamespaceTree()
        self._pending: List[PendingEvent] = []
        self._queue_unhandled = False
        self._max_pending = max_pending
        self._replaying = False
        self._replay_again = False
        self._emit_depth = 0
        self._lock = RLock()
        if queue_unhandled:
            self.queue_unhandled_events(True)

    @classmethod
    def from_config(cls, config: Optional[EmitterConfig] = None) -> "EventEmitter":
        """Build an emitter from ``config``, or from the environment/config file when omitted."""
        config = config if config is not None else EmitterConfig.from_sources()
        config.validate()
        return cls(queue_unhandled=config.queue_unhandled, max_pending=config.max_pending)

    # ------------------------ Queue ------------------------
    @property
    def queueing(self) -> bool:
        return self._queue_unhandled

    @property
    def pending_events(self) -> Tuple[PendingEvent, ...]:
        with self._lock:
            return tuple(self._pending)

    def queue_unhandled_events(self, enable: bool = True) -> "EventEmitter":
        with self._lock:
            self._queue_unhandled = bool(enable)
            if not self._queue_unhandled and self._pending:
                logger.debug("Discarding %d pending event(s)", len(self._pending))
                self._pending.clear()
        return self

    def _enqueue(self, name: str, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> None:
        if self._max_pending is not None and len(self._pending) >= self._max_pending:
            dropped = self._pending.pop(0)
            logger.warning(
                "Pending event queue full (%d); dropping oldest event '%s'", self._max_pending, dropped.name
            )
        self._pending.append(PendingEvent(name=name, args=args, kwargs=dict(kwargs)))
        logger.debug("Queued unhandled event '%s' (%d pending)", name, len(self._pending))

    def _replay_pending(self) -> None:
        # A registration made by a listener during a replay asks the running
        # replay for another pass instead of starting a nested one.
        if self._replaying:
            self._replay_again = True
            return
        if not self._pending:
            return
        self._replaying = True
        try:
            again = True
            while again and self._pending:
                self._replay_again = False
                for entry in list(self._pending):
                    # A listener may have discarded the queue meanwhile.
                    if entry not in self._pending:
                        continue
                    if self.emit(entry.name, *entry.args, **entry.kwargs) and entry in self._pending:
                        self._pending.remove(entry)
                        logger.debug("Delivered queued event '%s'", entry.name)
                again = self._replay_again
        finally:
            self._replaying = False
            self._replay_again = False

    # ------------------------ Registration ------------------------
    def on(self, pattern: str, listener: Callable[..., Any]) -> "EventEmitter":
        self._add(pattern, listener, once=False)
        return self

    def once(self, pattern: str, listener: Callable[..., Any]) -> "EventEmitter":
        self._add(pattern, listener, once=True)
        return self

    def subscribe(self, pattern: str, listener: Callable[..., Any], once: bool = False) -> Subscription:
        """Register ``listener`` and return a :class:`Subscription` that can cancel it."""
        path = normalize_path(pattern)
        record = self._add(pattern, listener, once=once)
        return Subscription(self, path, record)

    def listen(self, pattern: str, once: bool = False) -> Callable[[F], F]:
        """Decorator form of :meth:`on` / :meth:`once`.

        Example::

            @emitter.listen("user.created")
            def welcome(user):
                ...
        """

        def decorator(func: F) -> F:
            self._add(pattern, func, once=once)
            return func

        return decorator

    def _add(self, pattern: str, listener: Callable[..., Any], once: bool) -> Listener:
        if not callable(listener):
            raise TypeError("listener must be callable")
        record = Listener(callback=listener, once=once)
        with self._lock:
            self._tree.insert(normalize_path(pattern), record)
            logger.debug("Added %slistener %s on '%s'", "one-shot " if once else "", _describe(listener), pattern)
            self._replay_pending()
        return record

    # ------------------------ Emission ------------------------
    def emit(self, name: str, *args: Any, **kwargs: Any) -> bool:
        handled = False

        def fire(node: Node) -> bool:
            nonlocal handled
            handled = handled or bool(node.listeners)
            for record in list(node.listeners):
                # Skip listeners removed by an earlier callback in this pass.
                if record not in node.listeners:
                    continue
                if record.once:
                    node.listeners.remove(record)
                try:
                    result = record.callback(*args, **kwargs)
                except Exception:
                    # Nested emits re-raise silently; the outermost one logs.
                    if self._emit_depth == 1:
                        logger.exception("Listener %s failed for event '%s'", _describe(record.callback), name)
                    raise
                if result is False and record in node.listeners:
                    node.listeners.remove(record)
                    logger.debug("Listener %s detached itself from '%s'", _describe(record.callback), name)
            return True

        with self._lock:
            self._emit_depth += 1
            try:
                self._tree.traverse(normalize_path(name), fire)
            finally:
                self._emit_depth -= 1
            if handled:
                logger.debug("Emitted '%s'", name)
            elif self._queue_unhandled and not self._replaying:
                self._enqueue(name, args, kwargs)
            else:
                logger.debug("Event '%s' had no listeners", name)
        return handled

    # ------------------------ Removal ------------------------
    def remove_listener(self, pattern: str, listener: Callable[..., Any]) -> None:
        def remove_first(node: Node) -> bool:
            for record in node.listeners:
                if record.matches(listener):
                    node.listeners.remove(record)
                    logger.debug("Removed listener %s from '%s'", _describe(listener), pattern)
                    break
            return False

        self._visit_exact(normalize_path(pattern), remove_first)

    def remove_all_listeners(self, pattern: str = "") -> None:
        def clear(node: Node) -> bool:
            # Empty every detached node too, so an emit already walking this
            # branch finds nothing left to call.
            stack = [node]
            while stack:
                current = stack.pop()
                stack.extend(current.children.values())
                current.listeners.clear()
                current.children.clear()
            return False

        if self._visit_exact(normalize_path(pattern), clear):
            logger.debug("Removed all listeners on '%s'", pattern or "<root>")

    def _remove_record(self, path: Sequence[str], record: Listener) -> bool:
        removed = False

        def remove(node: Node) -> bool:
            nonlocal removed
            if record in node.listeners:
                node.listeners.remove(record)
                removed = True
            return False

        self._visit_exact(path, remove)
        return removed

    def _visit_exact(self, path: Sequence[str], visitor: Callable[[Node], bool]) -> bool:
        """Run ``visitor`` on the node at exactly ``path`` (and prune on the way back).

        Returns False without touching anything when no such node exists.
        """
        with self._lock:
            if self._tree.find(path) is None:
                return False
            self._tree.traverse(path, visitor)
            return True

    # ------------------------ Introspection ------------------------
    def listeners(self, pattern: str = "") -> List[Callable[..., Any]]:
        """Callbacks registered on exactly ``pattern``, in firing order."""
        with self._lock:
            node = self._tree.find(normalize_path(pattern))
            return [] if node is None else [record.callback for record in node.listeners]

    def _is_registered(self, path: Sequence[str], record: Listener) -> bool:
        with self._lock:
            node = self._tree.find(path)
            return node is not None and record in node.listeners
