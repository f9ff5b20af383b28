"""
Notes Gateway - Browser Client Configuration Script
=====================================================

What:  GET /vanilla-js/env.js publishes the identity SDK's public settings to a
       browser client as `window.__VANILLA_ENV__`.
Why:   A build-less client has no bundler to inline environment variables; the
       Session Manager there reads clerkPublishableKey / clerkFrontendApi from it.
Who:   Loaded with a <script> tag before the client's own code.

Only public values are exposed. Server secrets (ADMIN_API_KEY, verifier
configuration) never appear here.
"""

import json
import logging

from fastapi import APIRouter, Request, Response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Client"])


def render_env_script(publishable_key: str, frontend_api: str) -> str:
    payload = json.dumps(
        {"clerkPublishableKey": publishable_key, "clerkFrontendApi": frontend_api}
    )
    # Keep the payload from closing the surrounding <script> element
    payload = payload.replace("</", "<\\/")
    return f"window.__VANILLA_ENV__ = {payload};\n"


@router.get("/vanilla-js/env.js", summary="Client identity configuration script")
async def vanilla_env(request: Request) -> Response:
    app_settings = request.app.state.settings
    if not app_settings.clerk_publishable_key or not app_settings.clerk_frontend_api:
        logger.warning("Serving env.js without a complete identity configuration")

    return Response(
        content=render_env_script(
            app_settings.clerk_publishable_key, app_settings.clerk_frontend_api
        ),
        media_type="application/javascript",
        headers={"Cache-Control": "no-store"},
    )
