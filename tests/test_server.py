from counter_queue.server import MqttCounterService
from counter_queue.topics import client_events, events, requests


class FakeMqtt:
    """Stands in for MqttClient: records publishes, keeps handlers."""

    def __init__(self):
        self.published = []
        self.subscriptions = []
        self.handlers = []

    def subscribe(self, topic):
        self.subscriptions.append(topic)

    def add_handler(self, handler):
        self.handlers.append(handler)

    def publish(self, topic, message):
        self.published.append((topic, message))

    def deliver(self, topic, message):
        for h in self.handlers:
            h(topic, message)


NS = "test/v1"


def make_service():
    mqtt = FakeMqtt()
    service = MqttCounterService(mqtt=mqtt, namespace=NS)
    service.dispatcher._log = lambda line: None
    service.start()
    return mqtt, service


def test_service_subscribes_to_requests():
    mqtt, _ = make_service()
    assert mqtt.subscriptions == [requests(NS)]


def test_broadcasts_go_to_events_topic():
    mqtt, _ = make_service()
    mqtt.deliver(requests(NS), {"type": "generate-ticket", "client_id": "kiosk-1", "payload": "Normal"})

    topic, msg = mqtt.published[-1]
    assert topic == events(NS)
    assert msg["type"] == "ticket-generated"
    assert msg["payload"]["ticket"]["number"] == "N001"
    assert msg["payload"]["allQueues"]["Normal"][0]["number"] == "N001"


def test_errors_and_initial_state_go_to_the_requester():
    mqtt, _ = make_service()
    mqtt.deliver(requests(NS), {"type": "connect", "client_id": "board-1"})
    mqtt.deliver(
        requests(NS),
        {"type": "call-next", "client_id": "desk-1", "payload": {"category": "Normal", "counterId": "1", "attendantId": "A"}},
    )

    assert mqtt.published[0] == (
        client_events("board-1", NS),
        {"type": "initial-state", "payload": {"allQueues": {"Normal": [], "Priority": [], "Pickup": []}}},
    )
    topic, msg = mqtt.published[1]
    assert topic == client_events("desk-1", NS)
    assert msg["type"] == "call-error"
    assert msg["payload"]["code"] == "empty_queue"


def test_requests_without_client_id_or_on_other_topics_are_ignored():
    mqtt, _ = make_service()
    mqtt.deliver(requests(NS), {"type": "generate-ticket", "payload": "Normal"})
    mqtt.deliver(events(NS), {"type": "generate-ticket", "client_id": "k", "payload": "Normal"})
    assert mqtt.published == []


def test_stop_without_expiry_thread():
    _, service = make_service()
    service.stop()


def test_request_id_is_echoed_as_request_id_tag():
    mqtt, _ = make_service()
    mqtt.deliver(
        requests(NS),
        {"type": "generate-ticket", "client_id": "kiosk-1", "request_id": "r-1", "payload": "Normal"},
    )
    mqtt.deliver(requests(NS), {"type": "generate-ticket", "client_id": "kiosk-2", "request_id": 7, "payload": "Normal"})

    assert mqtt.published[0][1]["payload"]["requestId"] == "r-1"
    assert "requestId" not in mqtt.published[1][1]["payload"]
