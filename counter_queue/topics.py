"""MQTT topic helpers.

We keep topic construction in one place so the server and every client agree
on naming.

Topic layout under a configurable namespace (default: `counter-queue/v1`):

- `<ns>/requests`
    Every client publishes its requests here (generate, call, finish, ...).
- `<ns>/events`
    The server broadcasts every state change here. Displays subscribe.
- `<ns>/clients/<client_id>/events`
    Replies meant for one client only: the initial state and errors.

You can run multiple independent sites on a shared broker by changing the
`namespace` parameter (e.g. `--namespace branch/downtown`).
"""

from __future__ import annotations

DEFAULT_NAMESPACE = "counter-queue/v1"


def requests(namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}/requests"


def events(namespace: str = DEFAULT_NAMESPACE) -> str:
    """Broadcast topic for state changes."""
    return f"{namespace}/events"


def client_events(client_id: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Point-to-point topic for one client."""
    return f"{namespace}/clients/{client_id}/events"
