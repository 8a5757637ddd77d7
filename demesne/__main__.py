"""Entry point: ``python -m demesne``.

Sub-commands:
  - ``python -m demesne``            → Launch the FastAPI server with background workers
  - ``python -m demesne tick``       → Advance the world clock once if due
  - ``python -m demesne reap``       → Fail stale action queues once
  - ``python -m demesne set-date``   → Admin override of the world date
"""

from __future__ import annotations

import argparse
import logging
import sys

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Demesne world server")
    sub = parser.add_subparsers(dest="command")

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--db", type=str, default="demesne.db", help="SQLite database path")
        p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the API server and background workers (default)")
    add_common(srv)
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--seed", type=int, default=42)
    srv.add_argument("--workers", type=int, default=4)
    srv.add_argument("--tick-interval", type=float, default=86400.0, help="Real seconds per world week")
    srv.add_argument("--access-log", action="store_true", help="Log every HTTP request")

    tick = sub.add_parser("tick", help="Advance the world clock by one week if the interval has elapsed")
    add_common(tick)
    tick.add_argument("--force", action="store_true", help="Advance even if not yet due")

    reap = sub.add_parser("reap", help="Fail action queues whose worker stopped")
    add_common(reap)

    set_date = sub.add_parser("set-date", help="Set the world date directly (no season/year events)")
    add_common(set_date)
    set_date.add_argument("year", type=int)
    set_date.add_argument("season", type=str)
    set_date.add_argument("week", type=int)

    return parser


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from demesne.api.app import create_app
    from demesne.config import ServerConfig
    from demesne.utils.logging import setup_logging

    config = ServerConfig(
        db_path=args.db,
        world_seed=args.seed,
        num_workers=args.workers,
        tick_interval_seconds=args.tick_interval,
        log_level=args.log_level,
        access_log=args.access_log,
    )
    setup_logging(config.log_level, config.access_log)
    app = create_app(config)
    # log_config=None keeps uvicorn on the handlers installed above
    uvicorn.run(app, host=args.host, port=args.port, log_config=None, access_log=config.access_log)


def _run_once(args: argparse.Namespace) -> int:
    from demesne.api.runtime import ServerRuntime
    from demesne.config import ServerConfig
    from demesne.core.enums import Lane
    from demesne.core.errors import InvalidArgument
    from demesne.utils.logging import setup_logging

    config = ServerConfig(db_path=args.db, log_level=args.log_level)
    setup_logging(config.log_level)
    runtime = ServerRuntime(config)
    try:
        if args.command == "tick":
            if args.force:
                runtime.calendar.advance_week()
                ticked = True
            else:
                ticked = runtime.calendar.process_tick()
            print(f"{'Advanced' if ticked else 'Not due'}: {runtime.calendar.get_current().formatted_date}")
        elif args.command == "reap":
            print(f"Reaped {runtime.queues.reap_stale()} stale queue(s).")
        elif args.command == "set-date":
            try:
                clock = runtime.calendar.set_date(args.year, args.season, args.week)
            except InvalidArgument as exc:
                print(exc.message, file=sys.stderr)
                return 2
            print(f"World time set to: {clock.formatted_date}")
        # Jobs fanned out by a one-shot command are not persisted; run them before exiting.
        runtime.pool.run_pending(Lane.WORLD_EVENTS)
    finally:
        runtime.close()
    return 0


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None or args.command == "serve":
        if args.command is None:
            # Re-parse with serve defaults
            args = parser.parse_args(["serve"])
        _run_server(args)
    else:
        sys.exit(_run_once(args))


if __name__ == "__main__":
    main()
