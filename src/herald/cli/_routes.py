"""``herald routes``: list the operations the schema declares.

Loads only configuration and the schema document; no store, cache or
socket is touched.
"""

import argparse
import sys
from pathlib import Path

import anyio

from herald.config import AppConfig, Configuration
from herald.errors import HeraldError
from herald.schema.loader import load_schema


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of METHOD, PATH, OPERATION and CONTROLLER."""
    try:
        configuration = Configuration.from_file(args.config)
        app_config = AppConfig.from_configuration(configuration).anchored(Path(args.config).parent)
        document = anyio.run(load_schema, app_config.schema_path, configuration)
    except HeraldError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    base = document.base_path
    rows = [
        (op.method.upper(), f"{base}{op.path}", op.operation_id, op.controller or "-")
        for op in document.operations()
    ]
    if not rows:
        print("No operations declared.")
        return

    headers = ("METHOD", "PATH", "OPERATION", "CONTROLLER")
    widths = [max(len(h), *(len(row[i]) for row in rows)) for i, h in enumerate(headers)]
    fmt = "  ".join(f"{{:<{w}}}" for w in widths[:-1]) + "  {}"
    print(fmt.format(*headers))
    print("-" * min(sum(widths) + 6, 80))
    for row in rows:
        print(fmt.format(*row))
