"""Server: transport assembly, ASGI handling, and the request router."""
