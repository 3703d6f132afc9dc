"""Router stages shipped with herald.

    CORSMiddleware -- permissive cross-origin headers, OPTIONS answered early
    APIDocs -- raw schema and Swagger UI under the base path
    StaticFiles -- the public directory, served at the root
"""

from herald.middleware.cors import CORSConfig, CORSMiddleware
from herald.middleware.docs import APIDocs
from herald.middleware.protocol import Middleware, Next, chain
from herald.middleware.static import StaticFiles

__all__ = [
    "APIDocs",
    "CORSConfig",
    "CORSMiddleware",
    "Middleware",
    "Next",
    "StaticFiles",
    "chain",
]
