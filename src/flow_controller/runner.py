#!/usr/bin/env python3
"""
Flow Controller

Usage:
    flow-controller serve                  # Start the HTTP service
    flow-controller serve --port 8080      # Start on a custom port
    flow-controller serve --reload         # Auto-reload on code changes
    flow-controller start <flow-id>        # Start a flow (processor)
    flow-controller stop <flow-id>         # Stop a flow (processor)
    flow-controller delete <flow-id>       # Delete a flow (process group)
    flow-controller check-config           # Validate the config file

Options:
    --config PATH   Config file (default: config.local.yaml or user config)
    --engine URL    Engine API root (overrides config)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import httpx

from .config import CONFIG_PATH_ENV, ENGINE_URL_ENV, load_config, validate_config_file
from .core import FlowControllerError, FlowEngineClient, FlowExecutionError, FlowExecutor


logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the CLI and the server."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )

    # Suppress library loggers unless in debug mode
    if numeric_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def _resolve_config(args: argparse.Namespace) -> dict[str, Any]:
    config = load_config(args.config)
    if args.engine:
        config["engine"]["base_url"] = args.engine
    return config


@contextmanager
def open_client(config: dict[str, Any]) -> Iterator[FlowEngineClient]:
    """Yield an engine client whose connection pool is closed afterwards."""
    engine = config["engine"]
    with httpx.Client(timeout=engine["timeout"]) as http_client:
        yield FlowEngineClient(engine["base_url"], http_client=http_client)


def cmd_serve(args: argparse.Namespace, config: dict[str, Any]) -> int:
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Run: pip install uvicorn", file=sys.stderr)
        return 1

    host = args.host or config["server"]["host"]
    port = args.port or config["server"]["port"]

    print(f"Starting Flow Controller on http://{host}:{port}")
    print(f"API docs: http://{host}:{port}/docs")
    print(f"Engine: {config['engine']['base_url']}")
    print()

    # The factory runs in the server process, so it resolves config from the environment
    os.environ[ENGINE_URL_ENV] = config["engine"]["base_url"]
    if args.config:
        os.environ[CONFIG_PATH_ENV] = str(args.config)

    uvicorn.run(
        "flow_controller.server.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=args.reload,
        log_level=config["logging"]["level"].lower(),
    )
    return 0


def cmd_start(args: argparse.Namespace, config: dict[str, Any]) -> int:
    with open_client(config) as client:
        try:
            FlowExecutor(client).execute_flow(args.flow_id)
        except FlowExecutionError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    print(f"Flow {args.flow_id} started")
    return 0


def cmd_stop(args: argparse.Namespace, config: dict[str, Any]) -> int:
    return _run_client_op(config, "stop_flow", args.flow_id, "stopped")


def cmd_delete(args: argparse.Namespace, config: dict[str, Any]) -> int:
    return _run_client_op(config, "delete_flow", args.flow_id, "deleted")


def _run_client_op(config: dict[str, Any], op: str, flow_id: str, verb: str) -> int:
    with open_client(config) as client:
        try:
            getattr(client, op)(flow_id)
        except FlowControllerError as e:
            logger.error(f"{op} failed for {flow_id}: {type(e).__name__}: {e}")
            print(f"Error: Failed to {op.split('_')[0]} flow {flow_id}", file=sys.stderr)
            return 1

    print(f"Flow {flow_id} {verb}")
    return 0


def cmd_check_config(args: argparse.Namespace, config: dict[str, Any]) -> int:
    errors = validate_config_file(args.config)
    if errors:
        print("Config is invalid:")
        for error in errors:
            print(f"  - {error}")
        return 1

    print("Config OK")
    print(f"  engine.base_url = {config['engine']['base_url']}")
    print(f"  server = {config['server']['host']}:{config['server']['port']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flow-controller",
        description="Start, stop and delete flows on a flow engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("--config", "-c", type=Path, help="Path to config YAML file")
    parser.add_argument("--engine", help="Engine API root URL (overrides config)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host", help="Host to bind to")
    serve.add_argument("--port", type=int, help="Port to listen on")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    serve.set_defaults(func=cmd_serve)

    for name, func, help_text in [
        ("start", cmd_start, "Start a flow"),
        ("stop", cmd_stop, "Stop a flow"),
        ("delete", cmd_delete, "Delete a flow's process group"),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("flow_id", help="Flow identifier")
        sub.set_defaults(func=func)

    check = subparsers.add_parser("check-config", help="Validate the config file")
    check.set_defaults(func=cmd_check_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = _resolve_config(args)
    setup_logging(args.log_level or config["logging"]["level"])

    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
