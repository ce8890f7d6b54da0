import os
import shutil
import subprocess
import time


class LinuxIdleSource:
    """Linux idle time source: milliseconds since the last keyboard/mouse input.

    Priority order:
    1) xprintidle (X11 sessions; real time since last input)
    2) systemd-logind idle hints via loginctl (coarse fallback)

    Notes:
    - logind only flips IdleHint after the desktop's own idle timeout (often
      several minutes), so it reports 0 ms until then and afterwards counts from
      the flip, not from the last input. Short idle periods are invisible to it.
    - logind reports IdleSinceHintMonotonic in microseconds of CLOCK_MONOTONIC.
    - When nothing can tell us about idleness we report 0 ms, which the scheduler
      treats as activity (fail-open).
    """

    def __init__(self, *, use_xprintidle: bool = True):
        self._use_xprintidle = use_xprintidle

        self._session_id: str | None = None
        self._user: str | None = None
        self._last_method: str | None = None
        self._last_error: str | None = None

    def _get_user(self) -> str:
        if self._user is None:
            self._user = os.environ.get("USER") or os.environ.get("USERNAME") or ""
        return self._user

    def last_method(self) -> str | None:
        return self._last_method

    def last_error(self) -> str | None:
        return self._last_error

    def _find_session_id(self) -> str | None:
        """Find active session for current user."""

        user = self._get_user()
        try:
            result = subprocess.run(
                ["loginctl", "list-sessions", "--no-legend", "--no-pager"],
                capture_output=True,
                text=True,
                check=True,
            )
        except (subprocess.CalledProcessError, FileNotFoundError):
            return None

        user_session_ids: list[str] = []
        for line in result.stdout.strip().split("\n"):
            if not line.strip():
                continue
            parts = line.split()
            if len(parts) >= 3 and parts[2] == user:
                user_session_ids.append(parts[0])

        if not user_session_ids:
            return None

        for session_id in user_session_ids:
            props = self._get_session_properties(session_id)
            if props.get("State") == "active":
                return session_id

        return user_session_ids[0]

    def _get_session_properties(self, session_id: str) -> dict[str, str]:
        try:
            result = subprocess.run(
                [
                    "loginctl",
                    "show-session",
                    session_id,
                    "--property=IdleSinceHintMonotonic",
                    "--property=IdleHint",
                    "--property=State",
                ],
                capture_output=True,
                text=True,
                check=True,
            )
        except (subprocess.CalledProcessError, FileNotFoundError):
            return {}

        props: dict[str, str] = {}
        for line in result.stdout.strip().split("\n"):
            if "=" in line:
                key, value = line.split("=", 1)
                props[key] = value
        return props

    def _get_idle_ms_logind(self, now_mono: float) -> int | None:
        if self._session_id is None:
            self._session_id = self._find_session_id()
        if self._session_id is None:
            self._last_error = "no_session_found"
            return None

        props = self._get_session_properties(self._session_id)
        idle_hint = props.get("IdleHint")
        idle_since_raw = props.get("IdleSinceHintMonotonic")

        idle_since_us: int | None = None
        if idle_since_raw:
            try:
                idle_since_us = int(idle_since_raw)
            except ValueError:
                idle_since_us = None

        # A zero timestamp means logind never tracked idleness for this session.
        if not idle_since_us:
            return None

        if idle_hint == "no":
            return 0
        if idle_hint == "yes":
            now_us = int(now_mono * 1_000_000)
            if idle_since_us > now_us:
                return None
            return (now_us - idle_since_us) // 1000
        return None

    def _get_idle_ms_xprintidle(self) -> int | None:
        exe = shutil.which("xprintidle")
        if exe is None or not os.environ.get("DISPLAY"):
            return None

        try:
            result = subprocess.run([exe], capture_output=True, text=True, check=True, timeout=2)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError):
            return None

        try:
            return max(0, int(result.stdout.strip()))
        except ValueError:
            return None

    def get_idle_milliseconds(self) -> int:
        now_mono = time.monotonic()
        self._last_error = None

        methods = [("loginctl", lambda: self._get_idle_ms_logind(now_mono))]
        if self._use_xprintidle:
            methods.insert(0, ("xprintidle", self._get_idle_ms_xprintidle))

        for name, method in methods:
            idle_ms = method()
            if idle_ms is not None:
                self._last_method = name
                return idle_ms

        self._last_method = None
        if self._last_error is None:
            self._last_error = "idle_unavailable"
        return 0
