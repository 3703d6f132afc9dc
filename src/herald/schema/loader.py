"""Schema loader: reads the API definition and pins runtime host/basePath.

The file is read through ``anyio.Path`` so startup never blocks the event
loop, parsed with ``yaml.safe_load``, and patched from configuration
before the document is handed to anyone else.
"""

import logging
from pathlib import Path

import anyio
import yaml

from herald.config import Configuration
from herald.errors import LoadError
from herald.schema.document import SchemaDocument

logger = logging.getLogger("herald.schema")


async def load_schema(path: str | Path, config: Configuration) -> SchemaDocument:
    """Load, parse, and patch the schema document at *path*.

    ``host`` and ``basePath`` are always overwritten from the
    ``service.host`` and ``service.pathname`` configuration keys.

    Raises ``LoadError`` if the file is missing or unreadable, is not valid
    YAML, or does not contain a mapping.
    """
    try:
        raw = await anyio.Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read schema document {str(path)!r}: {exc.strerror or exc}"
        raise LoadError(msg) from exc

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        msg = f"Schema document {str(path)!r} is not valid YAML: {exc}"
        raise LoadError(msg) from exc

    if not isinstance(data, dict):
        msg = f"Schema document {str(path)!r} must contain a mapping, got {type(data).__name__}"
        raise LoadError(msg)

    data["host"] = config.get("service.host")
    data["basePath"] = config.get("service.pathname")

    document = SchemaDocument(data)
    logger.debug("Loaded schema %s (host=%s, basePath=%s)", path, document.host, document.base_path)
    return document
