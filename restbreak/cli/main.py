from __future__ import annotations

import argparse

CONTROL_COMMANDS = {
    "skip": "Skip the current or just-due break",
    "postpone": "Postpone the upcoming break",
    "reload": "Re-read config.toml",
    "pause": "Suspend break scheduling",
    "resume": "Resume break scheduling",
    "restart": "Reset both break counters",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="restbreak")
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Run break scheduler loop (foreground)")
    run_p.add_argument("--verbose", action="store_true", help="Log scheduler decisions")
    run_p.set_defaults(_handler="run")

    debug_p = sub.add_parser("debug", help="Print live idle samples and counters")
    debug_p.set_defaults(_handler="debug")

    status_p = sub.add_parser("status", help="Show service status and today's stats")
    status_p.set_defaults(_handler="status")

    for name, help_text in CONTROL_COMMANDS.items():
        control_p = sub.add_parser(name, help=help_text)
        control_p.set_defaults(_handler="control")

    init_p = sub.add_parser("init", help="Install + enable systemd user service")
    init_p.add_argument("--force", action="store_true", help="Overwrite existing unit")
    init_p.set_defaults(_handler="init")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args._handler == "run":
        from restbreak.cli.run import main as run_main

        return int(run_main(verbose=bool(getattr(args, "verbose", False))))

    if args._handler == "debug":
        from restbreak.cli.debug import main as debug_main

        debug_main()
        return 0

    if args._handler == "status":
        from restbreak.cli.status import main as status_main

        return int(status_main())

    if args._handler == "control":
        from restbreak.cli.control import main as control_main

        return int(control_main(command=args.command))

    if args._handler == "init":
        from restbreak.cli.init import main as init_main

        return int(init_main(force=bool(getattr(args, "force", False))))

    raise RuntimeError(f"Unknown command: {args._handler}")


if __name__ == "__main__":
    raise SystemExit(main())
