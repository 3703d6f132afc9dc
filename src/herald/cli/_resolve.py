"""Import string resolution: ``"module:attribute"`` to a Python object.

Used by ``herald serve`` to locate the application's controller factory
and service factory mapping.
"""

import importlib
import sys
from pathlib import Path
from typing import Any


def resolve_object(import_string: str, *, app_dir: str | Path | None = None) -> Any:
    """Resolve ``"module:attribute"`` (dotted attributes allowed).

    *app_dir* is put on ``sys.path`` first, so an application module
    sitting next to its configuration file is importable.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        ValueError: If the attribute part is missing.

    """
    module_path, _, attr_path = import_string.partition(":")
    if not module_path or not attr_path:
        msg = f"Expected 'module:attribute', got {import_string!r}"
        raise ValueError(msg)

    if app_dir is not None:
        directory = str(Path(app_dir).resolve())
        if directory not in sys.path:
            sys.path.insert(0, directory)

    obj: Any = importlib.import_module(module_path)
    for attr in attr_path.split("."):
        obj = getattr(obj, attr)
    return obj
