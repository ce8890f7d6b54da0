import sys
import time

from restbreak.cli.presenter import ConsolePresenter, format_seconds
from restbreak.engine.scheduler import BreakScheduler
from restbreak.engine.types import TICK_SECONDS
from restbreak.providers.linux import LinuxIdleSource
from restbreak.store import StatsRegistry, load_config


def main():
    """Run debug CLI - prints live idle samples, scheduler state and counters."""

    config, config_meta = load_config()
    idle_source = LinuxIdleSource()
    stats = StatsRegistry()
    presenter = ConsolePresenter(write=lambda _line: None)
    scheduler = BreakScheduler(idle_source, config.timers, stats=stats, on_event=presenter)

    print("Starting restbreak debug mode (no notifications, stats not saved)")
    print(f"Config: {config_meta.get('path')}")
    if config_meta.get("created"):
        print("Config created with defaults")
    elif config_meta.get("loaded"):
        print("Config loaded")
    if config_meta.get("error"):
        print(f"Config error: {config_meta.get('error')}")
    print("-" * 50)

    use_tty_ui = sys.stdout.isatty()

    def _render(lines: list[str]) -> None:
        if use_tty_ui:
            # Clear screen + move cursor home.
            sys.stdout.write("\x1b[2J\x1b[H")
        sys.stdout.write("\n".join(lines))
        sys.stdout.write("\n")
        sys.stdout.flush()

    try:
        while True:
            idle_seconds = scheduler.poll()
            t = scheduler.config
            phase = scheduler.phase

            lines: list[str] = []
            lines.append("restbreak debug")
            lines.append(
                f"tiny: every {format_seconds(t.tiny_interval)} for {format_seconds(t.tiny_duration)} "
                f"(idle skip {format_seconds(t.tiny_idle_skip)})"
            )
            lines.append(
                f"big: every {format_seconds(t.big_interval)} for {format_seconds(t.big_duration)} "
                f"(idle skip {format_seconds(t.big_idle_skip)})"
            )
            lines.append(
                f"idle source: method={idle_source.last_method()} error={idle_source.last_error()}"
            )
            lines.append("-" * 50)
            lines.append(f"idle_seconds: {idle_seconds}")
            lines.append(f"state: {scheduler.state.value}")
            lines.append(f"tiny counter: {scheduler.tiny_counter!r}")
            lines.append(f"big counter: {scheduler.big_counter!r}")
            for name in ("patience", "pause"):
                counter = getattr(phase, name, None)
                if counter is not None:
                    lines.append(f"{name} counter: {counter!r}")
            lines.append(f"progress: {scheduler.idle_progress():.1f}%")
            lines.append(presenter.tooltip())
            lines.append("-" * 50)

            if use_tty_ui:
                lines.append("Ctrl+C to exit")

            _render(lines)

            time.sleep(TICK_SECONDS)

    except KeyboardInterrupt:
        print("\nExiting debug mode...")
        print(f"Session stats: {stats.snapshot()}")


if __name__ == "__main__":
    main()
