# Security package init
"""
Notes Gateway - Security Package
==================================

What:  Pure access-control decisions and the server-side credential seams.

Module Inventory:
    - route_protection.py:  is_public_path / is_protected_route
    - origins.py:           CORS allowlist builder (normalize_origin, get_allowed_origins)
    - verifier.py:          CredentialVerifier ABC, VerifiedIdentity, load_verifier
    - guards.py:            require_identity / require_api_key dependencies

route_protection and origins have no I/O and no framework imports; config.py
depends on origins, so nothing here may import config at module level.
"""
