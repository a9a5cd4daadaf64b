from __future__ import annotations

# Single-entrypoint runner.
#
#     python -m counter_queue.app server [--numbering monotonic|queue-length] [--session-ttl S]
#     python -m counter_queue.app kiosk --category Normal
#     python -m counter_queue.app call --attendant-id A --counter-id 1 --category Normal
#     python -m counter_queue.app finish --attendant-id A --ticket N001
#     python -m counter_queue.app redirect --attendant-id A --ticket N001 --target Priority
#     python -m counter_queue.app heartbeat --attendant-id A [--every 5]
#     python -m counter_queue.app display [--gui]
#
# Each sub-command forwards to the `main()` of the module that implements it.

import argparse
import os

from .categories import Category
from .tickets import NumberingPolicy
from .topics import DEFAULT_NAMESPACE


def main() -> None:
    parser = argparse.ArgumentParser(description="Counter Queue (MQTT) - main entrypoint")
    sub = parser.add_subparsers(dest="cmd", required=True)

    def add_mqtt_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--mqtt-host", default="127.0.0.1")
        p.add_argument("--mqtt-port", type=int, default=int(os.environ.get("MQTT_PORT", "1883")))
        p.add_argument("--namespace", default=DEFAULT_NAMESPACE)

    categories = ", ".join(Category.labels())

    p_srv = sub.add_parser("server", help="Start the queue server")
    add_mqtt_args(p_srv)
    p_srv.add_argument("--numbering", choices=[p.value for p in NumberingPolicy], default=NumberingPolicy.MONOTONIC.value)
    p_srv.add_argument(
        "--session-ttl",
        type=float,
        default=None,
        help="drop attendant sessions idle this many seconds (heartbeats count as activity)",
    )
    p_srv.add_argument("--expire-every", type=float, default=10.0)

    p_kiosk = sub.add_parser("kiosk", help="Draw one ticket")
    add_mqtt_args(p_kiosk)
    p_kiosk.add_argument("--category", required=True, help=f"one of: {categories}")

    p_call = sub.add_parser("call", help="Call the next ticket to a counter")
    add_mqtt_args(p_call)
    p_call.add_argument("--attendant-id", required=True)
    p_call.add_argument("--counter-id", required=True)
    p_call.add_argument("--category", required=True, help=f"one of: {categories}")

    p_finish = sub.add_parser("finish", help="Finish the ticket in service")
    add_mqtt_args(p_finish)
    p_finish.add_argument("--attendant-id", required=True)
    p_finish.add_argument("--ticket", required=True)

    p_redirect = sub.add_parser("redirect", help="Send the ticket in service to another queue")
    add_mqtt_args(p_redirect)
    p_redirect.add_argument("--attendant-id", required=True)
    p_redirect.add_argument("--ticket", required=True)
    p_redirect.add_argument("--target", required=True, help=f"one of: {categories}")

    p_heartbeat = sub.add_parser("heartbeat", help="Keep an attendant session alive while serving")
    add_mqtt_args(p_heartbeat)
    p_heartbeat.add_argument("--attendant-id", required=True)
    p_heartbeat.add_argument("--every", type=float, default=5.0)

    p_display = sub.add_parser("display", help="Show live queues and calls")
    add_mqtt_args(p_display)
    p_display.add_argument("--gui", action="store_true", help="open Tkinter display board")

    args = parser.parse_args()
    mqtt_args = ["--mqtt-host", args.mqtt_host, "--mqtt-port", str(args.mqtt_port), "--namespace", args.namespace]

    if args.cmd == "server":
        from .server import main as run

        run_args = mqtt_args + ["--numbering", args.numbering, "--expire-every", str(args.expire_every)]
        if args.session_ttl is not None:
            run_args += ["--session-ttl", str(args.session_ttl)]
        _dispatch_to_module_main(run, run_args)
        return

    if args.cmd == "kiosk":
        from .kiosk import main as run

        _dispatch_to_module_main(run, mqtt_args + ["--category", args.category])
        return

    if args.cmd in ("call", "finish", "redirect", "heartbeat"):
        from .attendant import main as run

        run_args = mqtt_args + ["--attendant-id", args.attendant_id, args.cmd]
        if args.cmd == "call":
            run_args += ["--category", args.category, "--counter-id", args.counter_id]
        elif args.cmd == "finish":
            run_args += ["--ticket", args.ticket]
        elif args.cmd == "heartbeat":
            run_args += ["--every", str(args.every)]
        else:
            run_args += ["--ticket", args.ticket, "--target", args.target]
        _dispatch_to_module_main(run, run_args)
        return

    if args.cmd == "display":
        from .display import main as run

        _dispatch_to_module_main(run, mqtt_args + (["--gui"] if args.gui else []))
        return


def _dispatch_to_module_main(module_main, argv: list[str]) -> None:
    import sys

    old_argv = sys.argv[:]
    try:
        sys.argv = [old_argv[0], *argv]
        module_main()
    finally:
        sys.argv = old_argv


if __name__ == "__main__":
    main()
