from __future__ import annotations

import os
import signal
from pathlib import Path

from restbreak.engine.scheduler import BreakScheduler
from restbreak.store import get_pid_path

COMMAND_SIGNALS: dict[str, int] = {
    "skip": signal.SIGUSR1,
    "postpone": signal.SIGUSR2,
    "reload": signal.SIGHUP,
    "pause": signal.SIGRTMIN,
    "resume": signal.SIGRTMIN + 1,
    "restart": signal.SIGRTMIN + 2,
}

SIGNAL_COMMANDS: dict[int, str] = {sig: name for name, sig in COMMAND_SIGNALS.items()}


def write_pid_file(path: Path | None = None) -> Path:
    pid_path = path or get_pid_path()
    pid_path.parent.mkdir(parents=True, exist_ok=True)
    pid_path.write_text(f"{os.getpid()}\n", encoding="utf-8")
    return pid_path


def remove_pid_file(path: Path | None = None) -> None:
    pid_path = path or get_pid_path()
    try:
        if read_pid(pid_path) == os.getpid():
            pid_path.unlink()
    except OSError:
        pass


def read_pid(path: Path | None = None) -> int | None:
    pid_path = path or get_pid_path()
    try:
        return int(pid_path.read_text(encoding="utf-8").strip())
    except (OSError, ValueError):
        return None


def running_pid(path: Path | None = None) -> int | None:
    """Return the pid of a live `restbreak run`, or None for a missing/stale pid file."""

    pid = read_pid(path)
    if pid is None:
        return None
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return None
    except PermissionError:
        # Exists, but owned by someone else.
        return pid
    return pid


def apply_command(scheduler: BreakScheduler, command: str) -> None:
    """Run a control command on the scheduler (reload is handled by the caller)."""

    if command == "skip":
        scheduler.skip_break()
    elif command == "postpone":
        scheduler.postpone_break()
    elif command == "pause":
        scheduler.stop()
    elif command == "resume":
        scheduler.start()
    elif command == "restart":
        scheduler.restart()
    else:
        raise ValueError(f"Unknown command: {command}")


def main(*, command: str) -> int:
    sig = COMMAND_SIGNALS.get(command)
    if sig is None:
        print(f"Unknown command: {command}")
        return 2

    pid = running_pid()
    if pid is None:
        print("restbreak is not running (start it with `restbreak run`)")
        return 1

    try:
        os.kill(pid, sig)
    except OSError as e:
        print(f"Failed to signal pid {pid}: {e}")
        return 1

    print(f"Sent {command} to pid {pid}")
    return 0
