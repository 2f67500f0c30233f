"""Resource Proxy — every non-API request goes through the cache-first interceptor.

Invariants:
    - Registered last in main.py so /api/v1/* routes take precedence
    - All methods accepted; only GET is served from the store
    - Response body/status/headers come from the interceptor unchanged,
      minus transport headers

Design Decisions:
    - Catch-all route over middleware: the API routes and error handlers stay
      outside the proxy path
"""

import logging

from fastapi import APIRouter, Depends, Request, Response

from payflow.api.dependencies import get_interceptor
from payflow.core.resources import (
    ResourceRequest, normalize_resource_key, replay_headers,
)
from payflow.services.fetch_interceptor import CacheFirstInterceptor

logger = logging.getLogger(__name__)
router = APIRouter(tags=["resources"])

_PROXIED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@router.api_route("/{path:path}", methods=_PROXIED_METHODS, include_in_schema=False)
async def proxy_resource(
    path: str,
    request: Request,
    interceptor: CacheFirstInterceptor = Depends(get_interceptor),
):
    """Serve one resource cache-first (GET) or pass it through (others)."""
    target = "/" + path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    resource_request = ResourceRequest(
        method=request.method,
        key=normalize_resource_key(target),
        headers=[(k, v) for k, v in request.headers.items() if k.lower() != "host"],
        body=await request.body(),
    )
    stored = await interceptor.handle(resource_request)
    response = Response(content=stored.body, status_code=stored.status_code)
    for name, value in replay_headers(stored.headers):
        response.headers.append(name, value)
    return response
