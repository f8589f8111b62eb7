"""
Todo service (SQLite + FastAPI)

Commands:
  serve      Create the todo table if needed and run the HTTP gateway
  init-db    Create the todo table and exit

Every setting can come from config.yaml, a TODO_* environment variable, or a
flag below; flags win.
"""
from __future__ import annotations

import argparse
import sys

import uvicorn

from .config import load_settings
from .db import Database
from .errors import ConfigError, TodoServiceError
from .logs import setup_logger
from .services.todo_svc import TodoService


def _add_common(p: argparse.ArgumentParser):
    p.add_argument("--config", default=None, help="path to config.yaml")
    p.add_argument("--db-path", dest="db_path", default=None, help="SQLite database file")
    p.add_argument("--log-level", dest="log_level", default=None,
                   help="debug/info/warning/error, or -1..2 as in the original flags")
    p.add_argument("--log-time-format", dest="log_time_format", default=None,
                   help="strftime pattern for log timestamps, e.g. %%Y-%%m-%%dT%%H:%%M:%%S.%%f%%z")
    p.add_argument("--pool-size", dest="pool_size", type=int, default=None)
    p.add_argument("--pool-timeout", dest="pool_timeout", type=float, default=None,
                   help="seconds to wait for a free connection")
    p.add_argument("--statement-timeout", dest="statement_timeout", type=float, default=None,
                   help="seconds a statement may run, 0 disables")


def cmd_serve(args, settings, logger):
    from .api import create_app

    app = create_app(settings, logger)
    logger.info("Starting HTTP gateway...", extra={"host": settings.http_host, "port": settings.http_port})
    uvicorn.run(app, host=settings.http_host, port=settings.http_port,
                log_level=settings.log_level, access_log=False)
    logger.warning("HTTP gateway stopped")


def cmd_init_db(args, settings, logger):
    db = Database.from_settings(settings)
    try:
        TodoService(db, logger).ensure_schema()
    finally:
        db.dispose()
    logger.info("todo table ready", extra={"db-path": settings.db_path})


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="todo_backend", description="Todo service (SQLite + FastAPI)")
    sub = parser.add_subparsers()

    p_serve = sub.add_parser("serve", help="run the HTTP gateway")
    _add_common(p_serve)
    p_serve.add_argument("--http-host", dest="http_host", default=None)
    p_serve.add_argument("--http-port", dest="http_port", type=int, default=None)
    p_serve.set_defaults(func=cmd_serve)

    p_init = sub.add_parser("init-db", help="create the todo table")
    _add_common(p_init)
    p_init.set_defaults(func=cmd_init_db)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    try:
        settings = load_settings(args.config).override(vars(args))
    except ConfigError as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return 2

    logger = setup_logger(settings.log_level, settings.log_time_format)
    try:
        args.func(args, settings, logger)
    except TodoServiceError as e:
        logger.error("command failed", extra={"kind": e.kind.label, "error": e.message})
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
