from __future__ import annotations

# Event fan-out.
#
# The dispatcher only talks to the `Broadcaster` protocol, so the queue logic
# can be tested without a broker. Delivery is best effort (MQTT QoS 0): there
# is no acknowledgement and late subscribers do not get history.

from typing import Any, Protocol, TYPE_CHECKING

from .protocol import envelope
from .topics import DEFAULT_NAMESPACE, client_events, events

if TYPE_CHECKING:
    from .mqtt_client import MqttClient


class Broadcaster(Protocol):
    def broadcast_all(self, event: str, payload: dict[str, Any]) -> None:
        """Deliver to every connected observer."""

    def send_to(self, connection_id: str, event: str, payload: dict[str, Any]) -> None:
        """Deliver to exactly one observer."""


class MqttBroadcaster:
    """Publishes events on the namespace's broadcast or per-client topics."""

    def __init__(self, *, mqtt: MqttClient, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.mqtt = mqtt
        self.namespace = namespace

    def broadcast_all(self, event: str, payload: dict[str, Any]) -> None:
        self.mqtt.publish(events(self.namespace), envelope(event, payload))

    def send_to(self, connection_id: str, event: str, payload: dict[str, Any]) -> None:
        self.mqtt.publish(client_events(connection_id, self.namespace), envelope(event, payload))
