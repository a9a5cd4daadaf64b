from __future__ import annotations

# Client side of the wire protocol, shared by the kiosk, attendant and display
# programs.
#
# A client:
# - listens on the broadcast topic and on its own reply topic
# - announces itself with `connect` and receives the current queues
# - leaves a last-will `disconnect` with the broker, so a crash still reaches
#   the server as a disconnect
#
# Every request carries a fresh `request_id`; the server echoes it as
# `requestId` in the broadcast the request caused, so success is matched on
# that tag and never on content another client could share. Errors arrive on
# the reply topic and are unambiguous.

import time
import uuid
from typing import Any, Callable

from . import protocol
from .mqtt_client import MqttClient
from .topics import DEFAULT_NAMESPACE, client_events, events, requests


class CounterClient:
    def __init__(
        self,
        *,
        role: str,
        mqtt_host: str,
        mqtt_port: int,
        namespace: str = DEFAULT_NAMESPACE,
        timeout: float = 5.0,
    ) -> None:
        # Unique id so several kiosks/attendants can run concurrently.
        self.client_id = f"{role}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"
        self.namespace = namespace
        self.timeout = timeout

        self._reply_topic = client_events(self.client_id, namespace)
        self._events_topic = events(namespace)
        self._requests_topic = requests(namespace)

        self.mqtt = MqttClient(
            client_id=self.client_id,
            host=mqtt_host,
            port=mqtt_port,
            will_topic=self._requests_topic,
            will_message=protocol.request(protocol.DISCONNECT, self.client_id),
        )

    # -------------------- connection --------------------

    def open(self) -> dict[str, Any]:
        """Connect, subscribe and return the server's current queues."""
        self.mqtt.start()
        self.mqtt.subscribe(self._events_topic)
        self.mqtt.subscribe(self._reply_topic)

        msg = self.mqtt.request(
            request_topic=self._requests_topic,
            message=protocol.request(protocol.CONNECT, self.client_id),
            match=lambda topic, m: self._is_reply(topic, m, protocol.INITIAL_STATE),
            timeout=self.timeout,
        )
        return msg["payload"]["allQueues"]

    def close(self) -> None:
        try:
            self.mqtt.publish(self._requests_topic, protocol.request(protocol.DISCONNECT, self.client_id))
        finally:
            self.mqtt.stop()

    def __enter__(self) -> CounterClient:
        self.open()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def on_event(self, handler: Callable[[dict[str, Any]], None]) -> None:
        """Call `handler(envelope)` for every broadcast event."""

        def _forward(topic: str, msg: dict[str, Any]) -> None:
            if topic == self._events_topic:
                handler(msg)

        self.mqtt.add_handler(_forward)

    # -------------------- requests --------------------

    def generate_ticket(self, category: str) -> dict[str, Any]:
        return self._request(protocol.GENERATE_TICKET, category, protocol.TICKET_GENERATED, protocol.GENERATE_ERROR)

    def call_next(self, category: str, *, counter_id: str, attendant_id: str) -> dict[str, Any]:
        payload = {"category": category, "counterId": counter_id, "attendantId": attendant_id}
        return self._request(protocol.CALL_NEXT, payload, protocol.TICKET_CALLED, protocol.CALL_ERROR)

    def finish_service(self, number: str, *, attendant_id: str) -> dict[str, Any]:
        payload = {"ticket": {"number": number}, "attendantId": attendant_id}
        return self._request(protocol.FINISH_SERVICE, payload, protocol.SERVICE_FINISHED, protocol.FINISH_ERROR)

    def redirect_ticket(self, number: str, target_category: str, *, attendant_id: str) -> dict[str, Any]:
        payload = {"ticket": {"number": number}, "targetCategory": target_category, "attendantId": attendant_id}
        return self._request(protocol.REDIRECT_TICKET, payload, protocol.TICKET_REDIRECTED, protocol.REDIRECT_ERROR)

    def heartbeat(self, attendant_id: str) -> None:
        # Publish-only: the server just marks the session as alive.
        self.mqtt.publish(
            self._requests_topic,
            protocol.request(protocol.HEARTBEAT, self.client_id, {"attendantId": attendant_id}),
        )

    # -------------------- helpers --------------------

    def _request(self, request_type: str, payload: Any, ok_event: str, error_event: str) -> dict[str, Any]:
        request_id = uuid.uuid4().hex
        return self.mqtt.request(
            request_topic=self._requests_topic,
            message=protocol.request(request_type, self.client_id, payload, request_id),
            match=self.outcome_matcher(request_id, ok_event, error_event),
            timeout=self.timeout,
        )

    def outcome_matcher(self, request_id: str, ok_event: str, error_event: str) -> Callable[[str, dict[str, Any]], bool]:
        """Match the error reply on our topic, or the broadcast tagged with our request id."""

        def match(topic: str, msg: dict[str, Any]) -> bool:
            if self._is_reply(topic, msg, error_event):
                return True
            return self._is_broadcast(topic, msg, ok_event) and msg["payload"].get("requestId") == request_id

        return match

    def _is_reply(self, topic: str, msg: dict[str, Any], event: str) -> bool:
        return topic == self._reply_topic and msg.get("type") == event

    def _is_broadcast(self, topic: str, msg: dict[str, Any], event: str) -> bool:
        return topic == self._events_topic and msg.get("type") == event and isinstance(msg.get("payload"), dict)


def is_error(msg: dict[str, Any]) -> bool:
    return msg.get("type") in protocol.ERROR_EVENTS


def error_text(msg: dict[str, Any]) -> str:
    payload = msg.get("payload") or {}
    return f"{payload.get('message')} ({payload.get('code')})"


def queue_lengths(all_queues: dict[str, list[Any]]) -> str:
    return ", ".join(f"{name}={len(tickets)}" for name, tickets in all_queues.items())
