"""Service-counter ticketing system (MQTT-based).

Customers draw tickets per category, attendants call them to their counter and
every display on the broker sees each change live. The pieces:
- a Counter Queue server (authoritative state + broadcasts)
- kiosk and attendant command-line clients
- a display board (console or Tkinter)

See README for how to run.
"""
