import json

from src.staffing_ops.staffing_ops.common.change_feed import ChangeEvent, ChangeFeed, event_stream


def test_publish_reaches_subscribers_of_the_table_in_order():
    feed = ChangeFeed()
    seen = []
    feed.subscribe("messages", lambda e: seen.append(("first", e.record_id)))
    feed.subscribe("messages", lambda e: seen.append(("second", e.record_id)))
    feed.subscribe("attendance", lambda e: seen.append(("other", e.record_id)))

    delivered = feed.publish(ChangeEvent("messages", "insert", 7))

    assert delivered == 2
    assert seen == [("first", 7), ("second", 7)]


def test_unsubscribe_is_idempotent_and_scoped_by_context_manager():
    feed = ChangeFeed()
    seen = []

    with feed.subscribe("messages", seen.append) as sub:
        assert feed.subscriber_count("messages") == 1
        feed.publish(ChangeEvent("messages", "insert", 1))

    assert sub.active is False
    sub.unsubscribe()
    feed.publish(ChangeEvent("messages", "insert", 2))

    assert [e.record_id for e in seen] == [1]
    assert feed.subscriber_count() == 0


def test_failing_callback_does_not_block_others():
    feed = ChangeFeed()
    seen = []

    def boom(event):
        raise RuntimeError("listener crashed")

    feed.subscribe("messages", boom)
    feed.subscribe("messages", seen.append)

    assert feed.publish(ChangeEvent("messages", "update", 3)) == 1
    assert len(seen) == 1


def test_event_stream_holds_subscriptions_until_closed():
    feed = ChangeFeed()
    stream = event_stream(feed, ["attendance", "leave_requests"], heartbeat=0.01)

    assert feed.subscriber_count() == 0
    assert next(stream) == ": connected\n\n"
    assert feed.subscriber_count() == 2

    assert next(stream) == ": keep-alive\n\n"

    feed.publish(ChangeEvent("leave_requests", "update", 4, {"status": "approved"}))
    head, data, _ = next(stream).split("\n", 2)
    assert head == "event: leave_requests"
    assert json.loads(data[len("data: "):]) == {
        "table": "leave_requests",
        "action": "update",
        "record_id": 4,
        "payload": {"status": "approved"},
    }

    stream.close()
    assert feed.subscriber_count() == 0
