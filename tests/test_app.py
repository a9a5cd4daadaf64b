import subprocess
import sys


def run_help(*args):
    proc = subprocess.run(
        [sys.executable, "-m", "counter_queue.app", *args, "-h"],
        capture_output=True,
        text=True,
        check=False,
    )
    assert proc.returncode == 0
    return proc.stdout + proc.stderr


def test_app_help_runs():
    out = run_help()
    assert "main entrypoint" in out
    for cmd in ("server", "kiosk", "call", "finish", "redirect", "heartbeat", "display"):
        assert cmd in out


def test_server_help_lists_numbering_choices():
    out = run_help("server")
    assert "monotonic" in out
    assert "queue-length" in out
    assert "--session-ttl" in out


def test_call_help_runs():
    out = run_help("call")
    assert "--counter-id" in out
    assert "Pickup" in out


def test_heartbeat_help_runs():
    out = run_help("heartbeat")
    assert "--attendant-id" in out
    assert "--every" in out


def test_attendant_heartbeat_help_runs():
    proc = subprocess.run(
        [sys.executable, "-m", "counter_queue.attendant", "--attendant-id", "A", "heartbeat", "-h"],
        capture_output=True,
        text=True,
        check=False,
    )
    assert proc.returncode == 0
    assert "--every" in proc.stdout
