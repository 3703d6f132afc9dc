"""Shared type aliases used across herald modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Controller action: receives the request, returns a response value
Handler: TypeAlias = Callable[..., Any]

# Service factory: receives the assembled Context, returns a service object
ServiceFactory: TypeAlias = Callable[[Any], Any]
