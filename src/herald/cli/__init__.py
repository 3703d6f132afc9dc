"""Herald CLI: serve an API, list its declared operations.

Entry point registered as ``herald`` in ``pyproject.toml``::

    [project.scripts]
    herald = "herald.cli:main"
"""

import argparse
import logging
import sys


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``herald`` command."""
    parser = argparse.ArgumentParser(
        prog="herald",
        description="Herald: schema-validated HTTP API with a WebSocket push channel.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- herald serve -----------------------------------------------------
    serve_parser = subparsers.add_parser("serve", help="Bootstrap and serve the API")
    serve_parser.add_argument("--config", required=True, help="YAML configuration file")
    serve_parser.add_argument("--host", default=None, help="Bind host address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    serve_parser.add_argument("--log-level", default=None, help="Logging level (e.g. debug)")
    serve_parser.add_argument(
        "--controllers",
        default=None,
        help="Import string of the controller factory (e.g. movies.controllers:controllers)",
    )
    serve_parser.add_argument(
        "--services",
        default=None,
        help="Import string of the service factory mapping (e.g. movies.services:services)",
    )

    # -- herald routes ----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List declared API operations")
    routes_parser.add_argument("--config", required=True, help="YAML configuration file")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from herald.cli._serve import run_serve

        run_serve(args, configure_logging=_configure_logging)
    elif args.command == "routes":
        from herald.cli._routes import run_routes

        run_routes(args)
