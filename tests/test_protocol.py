from counter_queue import protocol
from counter_queue.topics import client_events, events, requests


def test_topic_helpers():
    ns = "demo/v1"
    assert requests(ns) == "demo/v1/requests"
    assert events(ns) == "demo/v1/events"
    assert client_events("kiosk-1", ns) == "demo/v1/clients/kiosk-1/events"


def test_default_namespace():
    assert requests() == "counter-queue/v1/requests"


def test_request_and_event_envelopes():
    assert protocol.request(protocol.GENERATE_TICKET, "k1", "Normal") == {
        "type": "generate-ticket",
        "client_id": "k1",
        "payload": "Normal",
    }
    assert protocol.envelope(protocol.CALL_ERROR, {"message": "x"}) == {
        "type": "call-error",
        "payload": {"message": "x"},
    }


def test_request_id_is_only_sent_when_given():
    assert protocol.request(protocol.CALL_NEXT, "d1", {}, request_id="abc")["request_id"] == "abc"
    assert "request_id" not in protocol.request(protocol.CALL_NEXT, "d1", {})
