from __future__ import annotations

# Counter Queue server process.
#
# IMPORTANT: This file is only the MQTT adapter around `RequestDispatcher`
# (see dispatcher.py for the queue logic):
# - subscribe to the shared requests topic
# - feed every request to the dispatcher
# - optionally run the idle-session cleanup loop

import argparse
import os
import threading
import time
from typing import Any, TYPE_CHECKING

from .broadcaster import MqttBroadcaster
from .dispatcher import CounterState, RequestDispatcher
from .tickets import NumberingPolicy, TicketFactory
from .topics import DEFAULT_NAMESPACE, requests

if TYPE_CHECKING:
    from .mqtt_client import MqttClient


class MqttCounterService:
    """MQTT adapter around the RequestDispatcher."""

    def __init__(
        self,
        *,
        mqtt: MqttClient,
        namespace: str = DEFAULT_NAMESPACE,
        state: CounterState | None = None,
    ) -> None:
        self.mqtt = mqtt
        self.namespace = namespace
        self.dispatcher = RequestDispatcher(
            broadcaster=MqttBroadcaster(mqtt=mqtt, namespace=namespace),
            state=state,
        )

        # Session cleanup thread control.
        self._stop_event = threading.Event()
        self._expiry_thread: threading.Thread | None = None

    def start(self, *, session_ttl: float | None = None, expire_every: float = 10.0) -> None:
        self.mqtt.subscribe(requests(self.namespace))
        self.mqtt.add_handler(self._handle_message)

        # Without a TTL, sessions live forever (a dropped attendant keeps
        # their ticket), which is the default behaviour.
        if session_ttl is not None:
            self._expiry_thread = threading.Thread(
                target=self._expiry_loop,
                args=(session_ttl, expire_every),
                daemon=True,
            )
            self._expiry_thread.start()

    def stop(self) -> None:
        """Stop background threads. Call before disconnecting MQTT."""
        self._stop_event.set()
        t = self._expiry_thread
        if t and t.is_alive():
            t.join(timeout=1.0)

    def _expiry_loop(self, session_ttl: float, interval: float) -> None:
        while not self._stop_event.wait(interval):
            self.dispatcher.expire_sessions(session_ttl)

    def _handle_message(self, topic: str, msg: dict[str, Any]) -> None:
        if topic != requests(self.namespace):
            return

        client_id = msg.get("client_id")
        if not isinstance(client_id, str) or not client_id:
            print(f"[server] ignoring request without client_id: {msg.get('type')!r}")
            return

        request_id = msg.get("request_id") if isinstance(msg.get("request_id"), str) else None
        self.dispatcher.handle(client_id, msg.get("type"), msg.get("payload"), request_id)


def main() -> None:
    # Import MQTT dependencies only when running the real service.
    from .mqtt_client import MqttClient

    parser = argparse.ArgumentParser(description="Counter Queue server (MQTT)")
    parser.add_argument("--mqtt-host", default="127.0.0.1")
    parser.add_argument("--mqtt-port", type=int, default=int(os.environ.get("MQTT_PORT", "1883")))
    parser.add_argument("--namespace", default=DEFAULT_NAMESPACE)
    parser.add_argument(
        "--numbering",
        choices=[p.value for p in NumberingPolicy],
        default=NumberingPolicy.MONOTONIC.value,
        help="ticket numbering: per-category counter, or waiting count + 1 (numbers may repeat)",
    )
    parser.add_argument(
        "--session-ttl",
        type=float,
        default=None,
        help=(
            "seconds without a call, finish, redirect or heartbeat before an attendant session is "
            "dropped and its ticket requeued; attendants serving longer must run `attendant heartbeat`"
        ),
    )
    parser.add_argument(
        "--expire-every",
        type=float,
        default=10.0,
        help="seconds between idle-session sweeps (only with --session-ttl)",
    )
    args = parser.parse_args()

    state = CounterState(factory=TicketFactory(policy=NumberingPolicy(args.numbering)))

    mqtt_client = MqttClient(client_id="counter-queue-server", host=args.mqtt_host, port=args.mqtt_port)
    mqtt_client.start()

    service = MqttCounterService(mqtt=mqtt_client, namespace=args.namespace, state=state)
    service.start(session_ttl=args.session_ttl, expire_every=args.expire_every)

    print(
        f"[server] connected to MQTT {args.mqtt_host}:{args.mqtt_port}, namespace={args.namespace}, "
        f"numbering={args.numbering}"
    )

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        service.stop()
        mqtt_client.stop()


if __name__ == "__main__":
    main()
