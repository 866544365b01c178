# hc_core/common/tests/test_events.py
from hc_core.common import events


def test_publish_reaches_each_handler_once():
    seen = []

    def handler(payload):
        seen.append(payload["n"])

    events.subscribe("test.event")(handler)
    events.subscribe("test.event")(handler)
    events.publish("test.event", {"n": 1})

    assert seen == [1]


def test_publish_without_subscribers_is_noop():
    events.publish("test.nobody-listens", {"n": 1})
