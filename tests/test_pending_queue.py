import logging

from nsevents import EventEmitter


def test_queueing_is_off_by_default(emitter: EventEmitter):
    assert emitter.queueing is False
    assert emitter.emit("x", 1) is False
    assert emitter.pending_events == ()


def test_unhandled_event_is_replayed_on_register(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events(True)

    assert emitter.emit("x", 1) is False
    assert [(e.name, e.args) for e in emitter.pending_events] == [("x", (1,))]

    emitter.on("x", recorder.listener("L"))

    assert recorder.calls == [("L", (1,), {})]
    assert emitter.pending_events == ()


def test_replay_only_delivers_matching_entries(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("y", 2)

    emitter.on("x", recorder.listener("L2"))

    assert recorder.calls == []
    assert [e.name for e in emitter.pending_events] == ["y"]


def test_replay_reaches_namespace_listeners(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("user.created", id=7)
    emitter.emit("order.placed")

    emitter.on("user", recorder.listener("user"))

    assert recorder.calls == [("user", (), {"id": 7})]
    assert [e.name for e in emitter.pending_events] == ["order.placed"]


def test_replay_preserves_queue_order(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("a", 1)
    emitter.emit("b", 2)
    emitter.emit("a", 3)

    emitter.on("", recorder.listener("all"))

    assert recorder.calls == [("all", (1,), {}), ("all", (2,), {}), ("all", (3,), {})]
    assert emitter.pending_events == ()


def test_still_unhandled_entries_are_not_duplicated(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("a")
    emitter.emit("b")

    emitter.on("c", recorder.listener("c"))
    emitter.on("d", recorder.listener("d"))

    assert [e.name for e in emitter.pending_events] == ["a", "b"]


def test_duplicate_events_are_independent(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("a", 1)
    emitter.emit("a", 1)

    emitter.once("a", recorder.listener("once"))

    # the one-shot listener consumes the first entry only
    assert recorder.calls == [("once", (1,), {})]
    assert len(emitter.pending_events) == 1

    emitter.on("a", recorder.listener("again"))
    assert recorder.labels == ["once", "again"]
    assert emitter.pending_events == ()


def test_handled_event_is_not_queued(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.on("a", recorder.listener("A"))

    assert emitter.emit("a") is True
    assert emitter.pending_events == ()


def test_disabling_discards_pending_events(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events(True)
    emitter.emit("x", 1)

    emitter.queue_unhandled_events(False)
    emitter.on("x", recorder.listener("L"))

    assert recorder.calls == []
    assert emitter.pending_events == ()
    assert emitter.emit("z") is False
    assert emitter.pending_events == ()


def test_queueing_flag_restored_after_replay(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("a")

    emitter.on("b", recorder.listener("b"))

    assert emitter.queueing is True
    emitter.emit("c")
    assert [e.name for e in emitter.pending_events] == ["a", "c"]


def test_events_emitted_by_replayed_listener_are_not_queued(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("a")

    def relay():
        recorder.calls.append(("relay", (), {}))
        emitter.emit("nobody.listens")

    emitter.on("a", relay)

    assert recorder.labels == ["relay"]
    assert emitter.pending_events == ()


def test_registration_inside_replay_delivers_later_entries_once(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("a")
    emitter.emit("b")

    def register_b():
        recorder.calls.append(("register_b", (), {}))
        emitter.on("b", recorder.listener("b"))

    emitter.once("a", register_b)

    # "b" is delivered exactly once, by the running replay
    assert recorder.labels == ["register_b", "b"]
    assert emitter.pending_events == ()


def test_max_pending_drops_oldest(recorder, caplog):
    emitter = EventEmitter(queue_unhandled=True, max_pending=2)

    with caplog.at_level(logging.WARNING, logger="nsevents.emitter"):
        emitter.emit("a")
        emitter.emit("b")
        emitter.emit("c")

    assert [e.name for e in emitter.pending_events] == ["b", "c"]
    assert "dropping oldest event 'a'" in caplog.text

    emitter.on("", recorder.listener("all"))
    assert len(recorder.calls) == 2


def test_constructor_enables_queueing():
    emitter = EventEmitter(queue_unhandled=True)

    assert emitter.queueing is True
    emitter.emit("a", 1, key="v")

    (entry,) = emitter.pending_events
    assert entry.name == "a"
    assert entry.args == (1,)
    assert entry.kwargs == {"key": "v"}


def test_registration_inside_replay_retries_earlier_entries(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("b", 2)
    emitter.emit("a", 1)

    def register_b(*_args):
        recorder.calls.append(("register_b", (), {}))
        emitter.on("b", recorder.listener("b"))

    emitter.once("a", register_b)

    # "b" was skipped before its listener existed, then delivered by a second pass
    assert recorder.calls == [("register_b", (), {}), ("b", (2,), {})]
    assert emitter.pending_events == ()


def test_disabling_queue_from_replayed_listener(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("a")
    emitter.emit("b")

    def stop_queueing():
        recorder.calls.append(("stop", (), {}))
        emitter.queue_unhandled_events(False)

    emitter.on("a", stop_queueing)

    assert recorder.labels == ["stop"]
    assert emitter.queueing is False
    assert emitter.pending_events == ()

    # "b" was discarded, so a later listener never sees it
    emitter.on("b", recorder.listener("b"))
    assert recorder.labels == ["stop"]


def test_enabling_queue_from_replayed_listener(emitter: EventEmitter, recorder):
    emitter.queue_unhandled_events()
    emitter.emit("a")
    emitter.emit("b")

    def keep_queueing():
        recorder.calls.append(("keep", (), {}))
        emitter.queue_unhandled_events(True)

    emitter.on("a", keep_queueing)

    assert recorder.labels == ["keep"]
    assert emitter.queueing is True
    assert [e.name for e in emitter.pending_events] == ["b"]

    emitter.emit("c")
    assert [e.name for e in emitter.pending_events] == ["b", "c"]
