# Routes package init
"""
Notes Gateway - Routes Package
================================

Route Inventory:
    - health.py:      GET|HEAD /, GET /health                      (public)
    - auth.py:        GET /auth-example, GET /api/api-key-example  (protected)
    - client_env.py:  GET /vanilla-js/env.js                       (public)
"""
