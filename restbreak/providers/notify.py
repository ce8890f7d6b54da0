import logging
import shutil
import subprocess

logger = logging.getLogger(__name__)


class DesktopNotifier:
    """NotificationSink backed by ``notify-send``.

    Delivery is fire-and-forget: a missing binary or a hung notification daemon
    is logged and never reaches the scheduler.
    """

    def __init__(self, *, enabled: bool = True, timeout_seconds: float = 2.0):
        self._enabled = enabled
        self._timeout_seconds = timeout_seconds
        self._exe: str | None = shutil.which("notify-send") if enabled else None

    def is_available(self) -> bool:
        return self._exe is not None

    @staticmethod
    def message(enforced: bool, is_big: bool) -> tuple[str, str]:
        title = "Time for a big break" if is_big else "Time for a break"
        if enforced:
            body = "Step away from the keyboard until the countdown ends."
        else:
            body = "Finish what you are doing and take a short rest."
        return title, body

    def notify_break(self, enforced: bool, is_big: bool) -> None:
        if self._exe is None:
            return

        title, body = self.message(enforced, is_big)
        urgency = "critical" if is_big else "normal"
        try:
            subprocess.run(
                [self._exe, "--app-name=restbreak", f"--urgency={urgency}", title, body],
                capture_output=True,
                text=True,
                check=True,
                timeout=self._timeout_seconds,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as exc:
            logger.warning("break notification failed: %s", exc)
