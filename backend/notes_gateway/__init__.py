"""
Notes Gateway - Application Package Initializer
=================================================

What:  Access control layer for the notes service, server and client side.

Architecture Note:

    ┌─────────────────────────────────────┐
    │    Routes + Middleware (HTTP)       │  ← FastAPI app, 401s, CORS
    ├─────────────────────────────────────┤
    │      Security (decisions)           │  ← route classifier, origin allowlist,
    │                                     │    verifier seam, guards
    ├─────────────────────────────────────┤
    │      Config + Exceptions            │  ← pydantic-settings, error hierarchy
    └─────────────────────────────────────┘

    ┌─────────────────────────────────────┐
    │      Client                         │  ← Session Manager, identity SDK
    │                                     │    interface, notes API client
    └─────────────────────────────────────┘

    The security decisions are pure functions with no framework imports, so
    they are testable without HTTP. The client package never imports the
    server app.
"""

__version__ = "1.0.0"
