from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path

SERVICE_NAME = "restbreak.service"

# xprintidle needs the X display and notify-send the session bus; a user unit
# started by systemd sees neither unless they are imported into the manager.
SESSION_ENV_VARS = ("DISPLAY", "XAUTHORITY", "WAYLAND_DISPLAY", "DBUS_SESSION_BUS_ADDRESS")


def unit_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME")
    unit_dir = Path(base) / "systemd" / "user" if base else Path.home() / ".config" / "systemd" / "user"
    return unit_dir / SERVICE_NAME


def detect_exec_start() -> str:
    exe = shutil.which("restbreak")
    if exe:
        return f"{exe} run"
    return f"{sys.executable} -m restbreak.cli.main run"


def render_service(*, exec_start: str) -> str:
    # SIGINT on stop lets `run` write today's stats before exiting;
    # `restbreak reload` and `systemctl --user reload` both end up as SIGHUP.
    return (
        "[Unit]\n"
        "Description=restbreak tiny/big break reminder\n"
        "After=graphical-session.target\n"
        "PartOf=graphical-session.target\n"
        "\n"
        "[Service]\n"
        "Type=simple\n"
        f"ExecStart={exec_start}\n"
        "ExecReload=/bin/kill -HUP $MAINPID\n"
        "KillSignal=SIGINT\n"
        "Restart=on-failure\n"
        "RestartSec=3\n"
        "\n"
        "[Install]\n"
        "WantedBy=graphical-session.target\n"
    )


def write_unit(path: Path, *, exec_start: str, force: bool = False) -> bool:
    """Write the unit file. Returns False when it exists and ``force`` is off."""

    if path.exists() and not force:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_service(exec_start=exec_start), encoding="utf-8")
    return True


def systemctl_commands(systemctl: str, environ: dict[str, str]) -> list[list[str]]:
    commands: list[list[str]] = []
    session_vars = [name for name in SESSION_ENV_VARS if environ.get(name)]
    if session_vars:
        commands.append([systemctl, "--user", "import-environment", *session_vars])
    commands.append([systemctl, "--user", "daemon-reload"])
    commands.append([systemctl, "--user", "enable", "--now", SERVICE_NAME])
    return commands


def main(*, force: bool = False) -> int:
    if sys.platform != "linux":
        print("init is currently supported only on Linux (systemd user)")
        return 1

    systemctl = shutil.which("systemctl")
    if not systemctl:
        print("systemctl not found; cannot enable systemd user service")
        return 1

    path = unit_path()
    if not write_unit(path, exec_start=detect_exec_start(), force=force):
        print(f"Service already exists: {path}")
        print("Re-run with --force to overwrite")
        return 1

    commands = systemctl_commands(systemctl, dict(os.environ))
    if not (os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY")):
        print("Warning: no DISPLAY/WAYLAND_DISPLAY in this shell; idle detection may fall back to logind")

    try:
        for command in commands:
            subprocess.run(command, check=True)
    except subprocess.CalledProcessError as e:
        print(f"systemctl failed: {e}")
        print(f"Unit written to: {path}")
        print("You can try manually:")
        for command in commands:
            print("  " + " ".join(["systemctl", *command[1:]]))
        return 1

    print(f"Installed and enabled: {path}")
    print("Check status:")
    print(f"  systemctl --user status {SERVICE_NAME}")
    return 0
