from __future__ import annotations

# Ticket kiosk client.
#
# A kiosk run is a short-lived process:
# - connect to broker and announce itself
# - publish a generate-ticket request
# - wait for the new ticket (or an error)
# - print it and exit

import argparse
import os

from .categories import Category
from .client import CounterClient, error_text, is_error, queue_lengths
from .topics import DEFAULT_NAMESPACE


def draw_ticket(*, mqtt_host: str, mqtt_port: int, namespace: str, category: str) -> dict:
    with CounterClient(role="kiosk", mqtt_host=mqtt_host, mqtt_port=mqtt_port, namespace=namespace) as client:
        return client.generate_ticket(category)


def main() -> None:
    parser = argparse.ArgumentParser(description="Ticket kiosk (MQTT)")
    parser.add_argument("--category", required=True, help=f"one of: {', '.join(Category.labels())}")
    parser.add_argument("--mqtt-host", default="127.0.0.1")
    parser.add_argument("--mqtt-port", type=int, default=int(os.environ.get("MQTT_PORT", "1883")))
    parser.add_argument("--namespace", default=DEFAULT_NAMESPACE)
    args = parser.parse_args()

    resp = draw_ticket(
        mqtt_host=args.mqtt_host,
        mqtt_port=args.mqtt_port,
        namespace=args.namespace,
        category=args.category,
    )
    if is_error(resp):
        print(f"[kiosk] error: {error_text(resp)}")
        raise SystemExit(1)

    payload = resp["payload"]
    print(f"[kiosk] your ticket: {payload['ticket']['number']} ({queue_lengths(payload['allQueues'])})")


if __name__ == "__main__":
    main()
