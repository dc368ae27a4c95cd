"""Tests for the player EventBus."""

import logging
from unittest.mock import Mock

from conductor.broadcast_core.events import EventBus, PlayerEvent


def test_publish_reaches_subscribers_in_order():
    bus = EventBus()
    received = []
    bus.subscribe(PlayerEvent.TRACK_CHANGE, lambda payload: received.append(("first", payload)))
    bus.subscribe(PlayerEvent.TRACK_CHANGE, lambda payload: received.append(("second", payload)))

    bus.publish(PlayerEvent.TRACK_CHANGE, "t1")

    assert received == [("first", "t1"), ("second", "t1")]


def test_kinds_are_independent():
    bus = EventBus()
    subscriber = Mock()
    bus.subscribe(PlayerEvent.VOLUME_CHANGE, subscriber)

    bus.publish(PlayerEvent.TIME_UPDATE, 3.0)

    subscriber.assert_not_called()


def test_duplicate_subscription_is_ignored():
    bus = EventBus()
    received = []
    bus.subscribe(PlayerEvent.ERROR, received.append)
    bus.subscribe(PlayerEvent.ERROR, received.append)

    bus.publish(PlayerEvent.ERROR, "oops")

    assert bus.subscriber_count(PlayerEvent.ERROR) == 1
    assert received == ["oops"]


def test_unsubscribe():
    bus = EventBus()
    received = []
    bus.subscribe(PlayerEvent.STATE_CHANGE, received.append)
    bus.unsubscribe(PlayerEvent.STATE_CHANGE, received.append)
    bus.unsubscribe(PlayerEvent.STATE_CHANGE, received.append)

    bus.publish(PlayerEvent.STATE_CHANGE, "playing")

    assert received == []
    assert bus.subscriber_count(PlayerEvent.STATE_CHANGE) == 0


def test_failing_subscriber_is_isolated(caplog):
    bus = EventBus()
    broken = Mock(side_effect=RuntimeError("listener failed"))
    healthy = Mock()

    bus.subscribe(PlayerEvent.TRACK_ENDED, broken)
    bus.subscribe(PlayerEvent.TRACK_ENDED, healthy)

    with caplog.at_level(logging.ERROR):
        bus.publish(PlayerEvent.TRACK_ENDED, "t1")

    broken.assert_called_once_with("t1")
    healthy.assert_called_once_with("t1")
    assert "listener failed" in caplog.text


def test_unsubscribe_during_publish():
    bus = EventBus()
    received = []

    def once(payload):
        received.append(payload)
        bus.unsubscribe(PlayerEvent.TIME_UPDATE, once)

    bus.subscribe(PlayerEvent.TIME_UPDATE, once)
    bus.subscribe(PlayerEvent.TIME_UPDATE, received.append)

    bus.publish(PlayerEvent.TIME_UPDATE, 1.0)
    bus.publish(PlayerEvent.TIME_UPDATE, 2.0)

    assert received == [1.0, 1.0, 2.0]
