"""Bootstrap: assemble the runtime context, one ordered stage at a time."""

from herald.bootstrap.context import Context, ControllerFactory
from herald.bootstrap.pipeline import BOOTSTRAP_STAGES, Bootstrap, Stage, bootstrap

__all__ = [
    "BOOTSTRAP_STAGES",
    "Bootstrap",
    "Context",
    "ControllerFactory",
    "Stage",
    "bootstrap",
]
