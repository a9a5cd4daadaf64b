from __future__ import annotations

# Display board (Tkinter).
#
# Goal: the wall screen of a service hall. Left table: waiting tickets per
# category. Right table: the last tickets called and the counter to go to.
#
# Architecture:
# - MQTT callbacks run on a background thread managed by paho-mqtt.
# - Tkinter must be updated from the main UI thread.
# - We therefore push incoming events into a Queue and poll it via
#   `root.after(...)`, applying them to a BoardState on the UI thread.

import queue
import time
import tkinter as tk
from tkinter import ttk
from typing import Any, cast

from . import protocol
from .client import CounterClient
from .display import BoardState


class DisplayBoardApp:
    def __init__(self, *, mqtt_host: str, mqtt_port: int, namespace: str, refresh_ms: int = 250) -> None:
        self.mqtt_host = mqtt_host
        self.mqtt_port = mqtt_port
        self.namespace = namespace
        self.refresh_ms = refresh_ms

        self.board = BoardState()

        self.root = tk.Tk()
        self.root.title("Service Counters")
        self.root.geometry("760x420")

        # Top info bar
        self.info_var = tk.StringVar(value="Connecting...")
        ttk.Label(self.root, textvariable=self.info_var).pack(fill=cast(Any, tk.X), padx=10, pady=(10, 5))

        body = ttk.Frame(self.root)
        body.pack(fill=cast(Any, tk.BOTH), expand=True, padx=10, pady=10)

        # Waiting tickets per category
        self.queues_tree = ttk.Treeview(body, columns=("category", "waiting", "next"), show="headings", height=8)
        self.queues_tree.heading("category", text="Service")
        self.queues_tree.heading("waiting", text="Waiting")
        self.queues_tree.heading("next", text="Next tickets")
        self.queues_tree.column("category", width=110, anchor=cast(Any, tk.W))
        self.queues_tree.column("waiting", width=80, anchor=cast(Any, tk.E))
        self.queues_tree.column("next", width=200, anchor=cast(Any, tk.W))
        self.queues_tree.pack(side=cast(Any, tk.LEFT), fill=cast(Any, tk.BOTH), expand=True)

        # Now serving
        self.calls_tree = ttk.Treeview(body, columns=("ticket", "counter"), show="headings", height=8)
        self.calls_tree.heading("ticket", text="Ticket")
        self.calls_tree.heading("counter", text="Counter")
        self.calls_tree.column("ticket", width=140, anchor=cast(Any, tk.CENTER))
        self.calls_tree.column("counter", width=140, anchor=cast(Any, tk.CENTER))
        self.calls_tree.pack(side=cast(Any, tk.RIGHT), fill=cast(Any, tk.BOTH), expand=True, padx=(10, 0))

        # Events from the MQTT thread
        self._inbox: "queue.Queue[dict[str, Any]]" = queue.Queue()

        self._client = CounterClient(role="board", mqtt_host=mqtt_host, mqtt_port=mqtt_port, namespace=namespace)
        self._connected = False

        self.root.protocol("WM_DELETE_WINDOW", self.close)

    def start(self) -> None:
        # If the broker or the server isn't reachable, keep the UI alive and show the error.
        try:
            self._client.on_event(self._inbox.put)
            initial = self._client.open()
            self._inbox.put(protocol.envelope(protocol.INITIAL_STATE, {"allQueues": initial}))
            self._connected = True
        except (OSError, TimeoutError) as e:
            self.info_var.set(f"Connection failed: {e}")

        self.root.after(cast(Any, self.refresh_ms), self._drain_inbox)
        self.root.mainloop()

    def close(self) -> None:
        try:
            if self._connected:
                self._client.close()
        finally:
            self.root.destroy()

    # -------------------- UI thread polling --------------------

    def _drain_inbox(self) -> None:
        changed = False
        while True:
            try:
                msg = self._inbox.get_nowait()
            except queue.Empty:
                break
            if self.board.apply(msg) is not None:
                changed = True

        if changed:
            self._render()

        if self._connected:
            if self.board.updated_at is None:
                self.info_var.set(f"Connected to MQTT {self.mqtt_host}:{self.mqtt_port} | waiting for updates...")
            else:
                age = max(0.0, time.time() - self.board.updated_at)
                self.info_var.set(
                    f"Connected to MQTT {self.mqtt_host}:{self.mqtt_port} | last update {age:0.1f}s ago"
                )

        self.root.after(cast(Any, self.refresh_ms), self._drain_inbox)

    def _render(self) -> None:
        for tree in (self.queues_tree, self.calls_tree):
            for item in tree.get_children():
                tree.delete(item)

        for name, tickets in self.board.queues.items():
            upcoming = " ".join(str(t.get("number")) for t in tickets[:5])
            self.queues_tree.insert("", cast(Any, tk.END), values=(name, str(len(tickets)), upcoming or "-"))

        if not self.board.calls:
            # Explicit empty state so the board doesn't look frozen.
            self.calls_tree.insert("", cast(Any, tk.END), values=("-", "-"))
            return
        for call in self.board.calls:
            self.calls_tree.insert("", cast(Any, tk.END), values=(call.number, call.counter_id))
