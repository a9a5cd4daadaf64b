from __future__ import annotations

# Attendant client.
#
# Each invocation performs one action for an attendant working at a counter:
# - call:     take the next ticket of a category to your counter
# - finish:   close the ticket you are serving
# - redirect: send the ticket you are serving to another category queue
# - heartbeat: keep your session alive during a long service (runs until Ctrl+C)
#
# The server remembers which ticket each attendant holds, so `finish` and
# `redirect` only need the attendant id and the ticket number.

import argparse
import os
import time

from .categories import Category
from .client import CounterClient, error_text, is_error, queue_lengths
from .topics import DEFAULT_NAMESPACE


def run_action(
    *,
    mqtt_host: str,
    mqtt_port: int,
    namespace: str,
    action: str,
    attendant_id: str,
    counter_id: str | None = None,
    category: str | None = None,
    ticket: str | None = None,
    target: str | None = None,
) -> dict:
    with CounterClient(
        role=f"attendant-{attendant_id}",
        mqtt_host=mqtt_host,
        mqtt_port=mqtt_port,
        namespace=namespace,
    ) as client:
        if action == "call":
            return client.call_next(category or "", counter_id=counter_id or "", attendant_id=attendant_id)
        if action == "finish":
            return client.finish_service(ticket or "", attendant_id=attendant_id)
        if action == "redirect":
            return client.redirect_ticket(ticket or "", target or "", attendant_id=attendant_id)
    raise ValueError(f"unknown action: {action}")


def run_heartbeat(
    *,
    mqtt_host: str,
    mqtt_port: int,
    namespace: str,
    attendant_id: str,
    every: float,
    count: int | None = None,
) -> int:
    """Send `count` heartbeats (forever if None), one every `every` seconds."""
    sent = 0
    with CounterClient(
        role=f"attendant-{attendant_id}",
        mqtt_host=mqtt_host,
        mqtt_port=mqtt_port,
        namespace=namespace,
    ) as client:
        while count is None or sent < count:
            client.heartbeat(attendant_id)
            sent += 1
            time.sleep(every)
    return sent


def main() -> None:
    parser = argparse.ArgumentParser(description="Attendant client (MQTT)")
    parser.add_argument("--mqtt-host", default="127.0.0.1")
    parser.add_argument("--mqtt-port", type=int, default=int(os.environ.get("MQTT_PORT", "1883")))
    parser.add_argument("--namespace", default=DEFAULT_NAMESPACE)
    parser.add_argument("--attendant-id", required=True)
    sub = parser.add_subparsers(dest="action", required=True)

    categories = ", ".join(Category.labels())

    p_call = sub.add_parser("call", help="call the next ticket of a category")
    p_call.add_argument("--category", required=True, help=f"one of: {categories}")
    p_call.add_argument("--counter-id", required=True)

    p_finish = sub.add_parser("finish", help="finish the ticket in service")
    p_finish.add_argument("--ticket", required=True, help="ticket number, e.g. N001")

    p_redirect = sub.add_parser("redirect", help="send the ticket in service to another queue")
    p_redirect.add_argument("--ticket", required=True, help="ticket number, e.g. N001")
    p_redirect.add_argument("--target", required=True, help=f"one of: {categories}")

    p_heartbeat = sub.add_parser("heartbeat", help="keep the session alive while serving (Ctrl+C to stop)")
    p_heartbeat.add_argument("--every", type=float, default=5.0, help="seconds between heartbeats")

    args = parser.parse_args()

    tag = f"[attendant {args.attendant_id}]"

    if args.action == "heartbeat":
        print(f"{tag} sending heartbeats every {args.every}s")
        try:
            run_heartbeat(
                mqtt_host=args.mqtt_host,
                mqtt_port=args.mqtt_port,
                namespace=args.namespace,
                attendant_id=args.attendant_id,
                every=args.every,
            )
        except KeyboardInterrupt:
            pass
        return

    resp = run_action(
        mqtt_host=args.mqtt_host,
        mqtt_port=args.mqtt_port,
        namespace=args.namespace,
        action=args.action,
        attendant_id=args.attendant_id,
        counter_id=getattr(args, "counter_id", None),
        category=getattr(args, "category", None),
        ticket=getattr(args, "ticket", None),
        target=getattr(args, "target", None),
    )

    if is_error(resp):
        print(f"{tag} error: {error_text(resp)}")
        raise SystemExit(1)

    payload = resp["payload"]
    number = payload["ticket"]["number"]
    if args.action == "call":
        print(f"{tag} now serving {number} at counter {payload['counterId']}")
    elif args.action == "finish":
        print(f"{tag} finished {number}")
    else:
        print(f"{tag} redirected {number} to {payload['targetCategory']}")
    print(f"{tag} queues: {queue_lengths(payload['allQueues'])}")


if __name__ == "__main__":
    main()
