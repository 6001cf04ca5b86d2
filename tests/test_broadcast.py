from steritrack_client.auth.broadcast import SessionBroadcaster


def test_announce_without_listeners_is_safe():
    SessionBroadcaster().announce_session_ended()


def test_listeners_run_in_registration_order():
    broadcaster = SessionBroadcaster()
    calls: list[str] = []
    broadcaster.subscribe(lambda: calls.append("first"))
    broadcaster.subscribe(lambda: calls.append("second"))

    broadcaster.announce_session_ended()

    assert calls == ["first", "second"]


def test_unsubscribe_stops_notifications_and_is_idempotent():
    broadcaster = SessionBroadcaster()
    calls: list[str] = []
    unsubscribe = broadcaster.subscribe(lambda: calls.append("hit"))

    unsubscribe()
    unsubscribe()
    broadcaster.announce_session_ended()

    assert calls == []
    assert len(broadcaster) == 0


def test_failing_listener_does_not_block_others(caplog):
    broadcaster = SessionBroadcaster()
    calls: list[str] = []

    def explode() -> None:
        raise RuntimeError("boom")

    broadcaster.subscribe(explode)
    broadcaster.subscribe(lambda: calls.append("still called"))

    with caplog.at_level("ERROR", logger="steritrack_client.auth.broadcast"):
        broadcaster.announce_session_ended()

    assert calls == ["still called"]
    assert "listener" in caplog.text
