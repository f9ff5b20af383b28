"""
Notes Gateway - Route Protection
==================================

What:  Decides whether an HTTP path requires an authenticated caller.
How:   A fixed list of public path entries matched by exact path or by
       "entry + /" prefix, with a hard override for the private-notes namespace.
Who:   Called by AuthMiddleware before any route handler runs.

Matching rules:
    "/"          matches only "/"
    "/docs"      matches "/docs" and "/docs/json", never "/documentation"
    "/htmx/private-notes..." is always protected, even though "/htmx" is public

Anything that matches no entry (including "" or a path without a leading
slash) is protected.
"""

from typing import Iterable, Tuple

# Paths reachable without a credential.
PUBLIC_PATHS: Tuple[str, ...] = (
    "/",
    "/health",
    "/docs",
    "/docs/json",
    "/webhooks",
    "/versions",
    "/api/public-notes",
    "/htmx",
    "/react",
    "/svelte",
    "/vanilla-js",
)

# Sub-namespaces that stay protected even under a public prefix.
PRIVATE_PREFIXES: Tuple[str, ...] = ("/htmx/private-notes",)


def matches_entry(path: str, entry: str) -> bool:
    """Exact match, or a child of a non-root entry."""
    # Why the "/" boundary: a bare startswith would let "/docs" expose "/documentation"
    if entry == "/":
        return path == "/"
    return path == entry or path.startswith(f"{entry}/")


def is_public_path(path: str, public_paths: Iterable[str] = PUBLIC_PATHS) -> bool:
    return any(matches_entry(path, entry) for entry in public_paths)


def is_protected_route(
    path: str,
    public_paths: Iterable[str] = PUBLIC_PATHS,
    private_prefixes: Iterable[str] = PRIVATE_PREFIXES,
) -> bool:
    """
    Return True when `path` requires authentication.

    The private-notes override is checked first; only then are the public
    entries consulted. The function never raises.
    """
    # Why: a malformed path must fail closed, never fall through as public
    if not isinstance(path, str):
        return True

    # Why first: "/htmx" is public, so without this "/htmx/private-notes" would be too
    if any(path.startswith(prefix) for prefix in private_prefixes):
        return True

    return not is_public_path(path, public_paths)
