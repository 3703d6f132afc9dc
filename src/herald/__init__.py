"""Herald: schema-validated HTTP API plus a WebSocket push channel.

Assembles a server from a Swagger 2.0 document, a configuration file and
a table of controller actions, one ordered bootstrap stage at a time.

Basic usage::

    from herald import Configuration, bootstrap

    config = Configuration.from_file("config.yaml")
    context = await bootstrap(config, controllers=make_controllers)
    await context.transport.serve()

Inside a controller, push to every connected client::

    await context.announce("movie:created", {"id": 42})
"""

__version__ = "0.1.0"
__all__ = [
    "AppConfig",
    "BootstrapStageError",
    "Configuration",
    "ConfigurationError",
    "Context",
    "ControllerRegistry",
    "HTTPError",
    "HeraldError",
    "LoadError",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "Request",
    "Response",
    "bootstrap",
    "get_session",
]

_LAZY = {
    "AppConfig": "herald.config",
    "Configuration": "herald.config",
    "Context": "herald.bootstrap",
    "bootstrap": "herald.bootstrap",
    "ControllerRegistry": "herald.controllers",
    "Request": "herald.http.request",
    "Response": "herald.http.response",
    "Middleware": "herald.middleware.protocol",
    "Next": "herald.middleware.protocol",
    "get_session": "herald.sessions.middleware",
    "BootstrapStageError": "herald.errors",
    "ConfigurationError": "herald.errors",
    "HTTPError": "herald.errors",
    "HeraldError": "herald.errors",
    "LoadError": "herald.errors",
    "MethodNotAllowed": "herald.errors",
    "NotFound": "herald.errors",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import herald`` fast while providing a clean top-level API.
    """
    module_name = _LAZY.get(name)
    if module_name is None:
        msg = f"module 'herald' has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
