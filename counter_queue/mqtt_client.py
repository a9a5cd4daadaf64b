"""Small MQTT helper built on top of paho-mqtt.

Why this exists:
- paho-mqtt is callback-based and works on raw bytes.
- The server and the clients all speak JSON objects, and the command-line
  clients want a *blocking* "send a request, wait for the matching event"
  helper.

Design:
- `MqttClient` manages connection + a background network loop.
- An optional last-will message is registered before connecting, so the broker
  announces a dropped client on our behalf.
- `request()` publishes a JSON message and waits until a received message
  satisfies a predicate.

QoS is 0 everywhere: events are best effort, at most once.
"""

from __future__ import annotations

import json
import queue
import threading
from typing import Any, Callable

import paho.mqtt.client as mqtt


MessageHandler = Callable[[str, dict[str, Any]], None]
MessageMatcher = Callable[[str, dict[str, Any]], bool]


class MqttClient:
    """Thin wrapper around paho-mqtt with JSON convenience APIs."""

    def __init__(
        self,
        *,
        client_id: str,
        host: str,
        port: int,
        keepalive: int = 30,
        will_topic: str | None = None,
        will_message: dict[str, Any] | None = None,
    ) -> None:
        self.client_id = client_id
        self.host = host
        self.port = port
        self.keepalive = keepalive

        self._client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            clean_session=True,
        )
        self._client.on_message = self._on_message
        if will_topic is not None and will_message is not None:
            self._client.will_set(will_topic, payload=_encode(will_message), qos=0)

        # External subscribers. Called with (topic, json_message).
        self._handlers: list[MessageHandler] = []

        # One-shot waiters used by request().
        self._waiters: list[tuple[MessageMatcher, "queue.Queue[dict[str, Any]]"]] = []
        self._lock = threading.Lock()

        self._started = False

    def start(self) -> None:
        """Connect and start the background network loop."""
        if self._started:
            return
        self._client.connect(self.host, self.port, keepalive=self.keepalive)
        self._client.loop_start()
        self._started = True

    def stop(self) -> None:
        """Stop and disconnect. A clean disconnect does not fire the will."""
        if not self._started:
            return
        self._client.disconnect()
        self._client.loop_stop()
        self._started = False

    def add_handler(self, handler: MessageHandler) -> None:
        self._handlers.append(handler)

    def subscribe(self, topic: str) -> None:
        self._client.subscribe(topic, qos=0)

    def publish(self, topic: str, message: dict[str, Any]) -> None:
        self._client.publish(topic, payload=_encode(message), qos=0)

    def request(
        self,
        *,
        request_topic: str,
        message: dict[str, Any],
        match: MessageMatcher,
        timeout: float = 5.0,
    ) -> dict[str, Any]:
        """Publish a message and wait for the first message accepted by `match`.

        The caller must already be subscribed to the topics the answer can
        arrive on.
        """
        q: "queue.Queue[dict[str, Any]]" = queue.Queue(maxsize=1)
        waiter = (match, q)

        with self._lock:
            self._waiters.append(waiter)

        self.publish(request_topic, message)

        try:
            return q.get(timeout=timeout)
        except queue.Empty as e:
            raise TimeoutError(f"No answer to {message.get('type')} within {timeout}s") from e
        finally:
            with self._lock:
                if waiter in self._waiters:
                    self._waiters.remove(waiter)

    # -------------------- internal callbacks --------------------

    def _on_message(self, client: mqtt.Client, userdata: Any, msg: mqtt.MQTTMessage) -> None:
        # Decode JSON (ignore malformed messages).
        try:
            raw = msg.payload
            payload = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
            data = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError):
            return
        if not isinstance(data, dict):
            return

        # Waiters first; a message can satisfy a waiter and still reach handlers.
        with self._lock:
            waiters = list(self._waiters)
        for match, q in waiters:
            if match(msg.topic, data):
                with self._lock:
                    if (match, q) in self._waiters:
                        self._waiters.remove((match, q))
                try:
                    q.put_nowait(data)
                except queue.Full:
                    pass

        for h in list(self._handlers):
            try:
                h(msg.topic, data)
            except Exception as e:
                # An exception escaping here would stop paho's network loop.
                print(f"[mqtt {self.client_id}] handler failed on {msg.topic}: {e!r}")


def _encode(message: dict[str, Any]) -> bytes:
    return json.dumps(message, separators=(",", ":")).encode("utf-8")
