"""``herald serve``: bootstrap the context and serve it under uvicorn."""

import argparse
import logging
import sys
from collections.abc import Callable
from pathlib import Path

import anyio

from herald.bootstrap import bootstrap
from herald.cli._resolve import resolve_object
from herald.config import AppConfig, Configuration
from herald.errors import HeraldError

logger = logging.getLogger("herald.cli")


def run_serve(
    args: argparse.Namespace,
    *,
    configure_logging: Callable[[str], None],
) -> None:
    """Load configuration, bootstrap, serve until interrupted."""
    try:
        configuration = Configuration.from_file(args.config)
        app_dir = Path(args.config).parent
        app_config = AppConfig.from_configuration(configuration).anchored(app_dir)
        configure_logging(args.log_level or app_config.log_level)

        controllers_ref = args.controllers or configuration.get("app.controllers", None)
        services_ref = args.services or configuration.get("app.services", None)
        controllers = resolve_object(controllers_ref, app_dir=app_dir) if controllers_ref else None
        services = resolve_object(services_ref, app_dir=app_dir) if services_ref else None
    except (HeraldError, ModuleNotFoundError, AttributeError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    async def serve() -> None:
        context = await bootstrap(
            configuration,
            app_config=app_config,
            services=services,
            controllers=controllers,
        )
        transport = context.require(context.transport, "transport")
        await transport.serve(host=args.host, port=args.port)

    try:
        anyio.run(serve)
    except HeraldError as exc:
        logger.debug("Startup failed", exc_info=exc)
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        pass
