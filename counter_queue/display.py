from __future__ import annotations

# Display client.
#
# Subscribes to the broadcast topic and keeps a local picture of the queues and
# of the last calls. Every broadcast carries the full `allQueues` snapshot, so
# the board simply replaces its queues on each event; only the "now serving"
# list is accumulated locally.
#
# The console mode prints one line per event; `--gui` opens the Tkinter board
# (see gui.py) fed by the same BoardState.

import argparse
import os
import time
from dataclasses import dataclass, field
from typing import Any

from . import protocol
from .client import CounterClient, queue_lengths
from .topics import DEFAULT_NAMESPACE


@dataclass
class CounterCall:
    number: str
    counter_id: str
    attendant_id: str


@dataclass
class BoardState:
    """What a display shows. Pure data, updated from event envelopes."""

    max_calls: int = 5
    queues: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    calls: list[CounterCall] = field(default_factory=list)  # newest first
    updated_at: float | None = None

    def apply(self, msg: dict[str, Any]) -> str | None:
        """Apply one event. Returns a printable line, or None if ignored."""
        mtype = msg.get("type")
        payload = msg.get("payload")
        if mtype not in protocol.STATE_EVENTS or not isinstance(payload, dict):
            return None

        all_queues = payload.get("allQueues")
        if isinstance(all_queues, dict):
            self.queues = all_queues
        self.updated_at = time.time()

        number = (payload.get("ticket") or {}).get("number")

        if mtype == protocol.TICKET_CALLED:
            call = CounterCall(
                number=str(number),
                counter_id=str(payload.get("counterId")),
                attendant_id=str(payload.get("attendantId")),
            )
            # One line per counter: a new call replaces the counter's previous one.
            self.calls = [c for c in self.calls if c.counter_id != call.counter_id]
            self.calls.insert(0, call)
            del self.calls[self.max_calls :]
            return f"ticket {call.number} -> counter {call.counter_id}"

        if mtype in (protocol.SERVICE_FINISHED, protocol.TICKET_REDIRECTED):
            self.calls = [c for c in self.calls if c.number != number]
            if mtype == protocol.TICKET_REDIRECTED:
                return f"ticket {number} redirected to {payload.get('targetCategory')}"
            return f"ticket {number} finished"

        if mtype == protocol.TICKET_GENERATED:
            return f"new ticket {number}"

        if mtype == protocol.SESSIONS_EXPIRED:
            return f"idle attendants dropped: {', '.join(payload.get('attendantIds', []))}"

        return "initial state"


def run_console(*, mqtt_host: str, mqtt_port: int, namespace: str) -> None:
    board = BoardState()
    client = CounterClient(role="display", mqtt_host=mqtt_host, mqtt_port=mqtt_port, namespace=namespace)

    def on_event(msg: dict[str, Any]) -> None:
        line = board.apply(msg)
        if line is not None:
            print(f"[display] {line} | {queue_lengths(board.queues)}")

    client.on_event(on_event)
    initial = client.open()
    # A broadcast may have overtaken the initial state; it is newer.
    if board.updated_at is None:
        board.apply(protocol.envelope(protocol.INITIAL_STATE, {"allQueues": initial}))
    print(f"[display] connected to MQTT {mqtt_host}:{mqtt_port} | {queue_lengths(board.queues)}")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        client.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Queue display (MQTT)")
    parser.add_argument("--mqtt-host", default="127.0.0.1")
    parser.add_argument("--mqtt-port", type=int, default=int(os.environ.get("MQTT_PORT", "1883")))
    parser.add_argument("--namespace", default=DEFAULT_NAMESPACE)
    parser.add_argument("--gui", action="store_true", help="open Tkinter display board")
    parser.add_argument("--refresh-ms", type=int, default=250)
    args = parser.parse_args()

    if args.gui:
        from .gui import DisplayBoardApp

        DisplayBoardApp(
            mqtt_host=args.mqtt_host,
            mqtt_port=args.mqtt_port,
            namespace=args.namespace,
            refresh_ms=args.refresh_ms,
        ).start()
        return

    run_console(mqtt_host=args.mqtt_host, mqtt_port=args.mqtt_port, namespace=args.namespace)


if __name__ == "__main__":
    main()
