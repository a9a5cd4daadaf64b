from counter_queue import protocol
from counter_queue.client import CounterClient, error_text, is_error, queue_lengths
from counter_queue.topics import client_events, events

NS = "test/v1"


def make_client():
    # Never started: no broker connection is made.
    return CounterClient(role="kiosk", mqtt_host="127.0.0.1", mqtt_port=1883, namespace=NS)


def generated(request_id=None):
    payload = {"ticket": {"number": "N001", "category": "Normal", "createdAt": 1.0}, "allQueues": {}}
    if request_id is not None:
        payload["requestId"] = request_id
    return protocol.envelope(protocol.TICKET_GENERATED, payload)


def test_outcome_matcher_ignores_another_kiosks_ticket_of_the_same_category():
    client = make_client()
    match = client.outcome_matcher("mine", protocol.TICKET_GENERATED, protocol.GENERATE_ERROR)

    assert not match(events(NS), generated("theirs"))
    assert not match(events(NS), generated())
    assert match(events(NS), generated("mine"))


def test_outcome_matcher_accepts_errors_on_own_reply_topic_only():
    client = make_client()
    match = client.outcome_matcher("mine", protocol.TICKET_GENERATED, protocol.GENERATE_ERROR)
    error = protocol.envelope(protocol.GENERATE_ERROR, {"code": "invalid_category", "message": "bad"})

    assert match(client_events(client.client_id, NS), error)
    assert not match(client_events("kiosk-other", NS), error)
    assert not match(events(NS), error)


def test_outcome_matcher_checks_event_type():
    client = make_client()
    match = client.outcome_matcher("mine", protocol.TICKET_CALLED, protocol.CALL_ERROR)
    assert not match(events(NS), generated("mine"))


def test_error_helpers():
    error = protocol.envelope(protocol.CALL_ERROR, {"code": "empty_queue", "message": "Queue is empty."})
    assert is_error(error)
    assert not is_error(generated())
    assert error_text(error) == "Queue is empty. (empty_queue)"
    assert queue_lengths({"Normal": [1, 2], "Priority": []}) == "Normal=2, Priority=0"
