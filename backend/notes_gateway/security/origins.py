"""
Notes Gateway - CORS Origin Allowlist
=======================================

What:  Builds the list of browser origins allowed to call the API cross-origin.
How:   Collects candidate tokens from several configuration keys, normalizes
       each one to `scheme://host[:port]`, and de-duplicates the result.
Who:   Settings.allowed_origins feeds this into Starlette's CORSMiddleware.

Sources, in order:
    1. DEV_ORIGINS (always present)
    2. CORS_ORIGINS              comma-separated
    3. CLERK_AUTHORIZED_PARTIES  comma-separated
    4. APP_URL (or VITE_APP_URL when APP_URL is unset)
    5. VERCEL_URL                bare host, assembled as https://<value>

Normalization:
    " notes.example.com/app/ " -> "https://notes.example.com"
    "http://LOCALHOST:5173/"   -> "http://localhost:5173"
    "https://example.com:443"  -> "https://example.com"
    "ftp://files.example.com"  -> dropped
    "https://"                 -> dropped

A token that cannot be normalized is left out of the allowlist. Nothing in this
module raises on bad input; a typo shrinks the allowlist instead.
"""

import re
from typing import Iterable, List, Mapping, Optional
from urllib.parse import urlsplit

DEV_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:6173",
)

ALLOWED_SCHEMES = {"http", "https"}
DEFAULT_PORTS = {"http": 80, "https": 443}

_HTTP_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
# Any other explicit scheme ("ftp://", "javascript://") is kept so it gets rejected.
_OTHER_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
_FORBIDDEN_HOST_CHARS_RE = re.compile(r"[\s<>\"{}|\\^`/?#@]")


def split_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated configuration value into trimmed, non-empty tokens."""
    if not value:
        return []
    return [entry.strip() for entry in str(value).split(",") if entry.strip()]


def normalize_origin(value: Optional[str]) -> Optional[str]:
    """
    Reduce a raw origin token to `scheme://host[:port]`.

    Returns None when the token is empty, does not parse, has no host, or uses a
    scheme other than http/https.
    """
    if value is None:
        return None
    trimmed = str(value).strip()
    if not trimmed:
        return None

    # Why: only scheme-less tokens get https://, so "ftp://host" is rejected
    # rather than reparsed as the host "ftp"
    if _HTTP_SCHEME_RE.match(trimmed) or trimmed.startswith("//") or _OTHER_SCHEME_RE.match(trimmed):
        candidate = trimmed
    else:
        candidate = f"https://{trimmed}"

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        return None

    host = parts.hostname
    if not host or _FORBIDDEN_HOST_CHARS_RE.search(host):
        return None
    # urlsplit strips IPv6 brackets; an origin needs them back
    if ":" in host:
        host = f"[{host}]"

    # Why drop default ports: browsers send "https://host", never "https://host:443"
    if port is None or port == DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def dedupe_origins(tokens: Iterable[str]) -> List[str]:
    """Normalize every token and keep each canonical origin once, first-seen order."""
    seen = {}
    for token in tokens:
        normalized = normalize_origin(token)
        if normalized and normalized not in seen:
            seen[normalized] = None
    return list(seen)


def get_allowed_origins(env: Optional[Mapping[str, Optional[str]]] = None) -> List[str]:
    """
    Build the CORS allowlist from a mapping of configuration keys.

    Args:
        env: Mapping such as os.environ or Settings.origin_environment().
             Missing keys and empty values are ignored.

    Returns:
        Normalized, de-duplicated origins. Always contains DEV_ORIGINS.
    """
    env = env or {}

    app_url = env.get("APP_URL") or env.get("VITE_APP_URL")
    vercel_host = (env.get("VERCEL_URL") or "").strip()

    raw_origins: List[str] = [
        *DEV_ORIGINS,
        *split_list(env.get("CORS_ORIGINS")),
        *split_list(env.get("CLERK_AUTHORIZED_PARTIES")),
    ]
    if app_url:
        raw_origins.append(app_url)
    if vercel_host:
        raw_origins.append(f"https://{vercel_host}")

    return dedupe_origins(raw_origins)
