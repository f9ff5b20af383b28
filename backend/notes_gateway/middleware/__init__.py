# Middleware package init
"""
Notes Gateway - Middleware Package
====================================

Middleware Chain (order matters!):
    Request → [CORS] → [Request ID] → [Logging] → [Auth] → Route Handler

    1. CORS first: answers preflights and decorates every response, 401s included
    2. Request ID: correlation ID for logs and error bodies
    3. Logging: one access line per request, with the protected verdict
    4. Auth last: rejects protected paths that carry no accepted credential
"""
