"""Origin Client — forwards resource requests to the remote origin over httpx.

Invariants:
    - Each response body is read exactly once, into an owned StoredResponse
    - Transport failures map to OriginFetchFailedError; HTTP error statuses are
      returned as responses, not raised
    - No retries: a failed fetch is reported to the caller as-is

Design Decisions:
    - Wrapper over raw httpx.AsyncClient: isolates error mapping from the
      interceptor and cache manager
    - is_same_origin() compares the final URL (after redirects) with the
      configured origin: a redirected cross-origin response is never stored
"""

import logging
from dataclasses import dataclass

import httpx

from payflow.core.errors import ErrorContext, OriginFetchFailedError
from payflow.core.resources import ResourceRequest, StoredResponse

logger = logging.getLogger(__name__)

# Request headers that describe the client-to-proxy hop only.
_HOP_HEADERS = frozenset({"host", "connection", "content-length", "keep-alive"})


@dataclass(frozen=True)
class OriginResponse:
    response: StoredResponse
    same_origin: bool


class OriginClient:
    """Fetches resources from the origin configured at base_url."""

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self.client = client
        self.base_url = httpx.URL(base_url)

    def url_for(self, key: str) -> httpx.URL:
        return self.base_url.join(key)

    def is_same_origin(self, url: httpx.URL) -> bool:
        return (
            url.scheme == self.base_url.scheme
            and url.host == self.base_url.host
            and url.port == self.base_url.port
        )

    async def fetch(self, request: ResourceRequest) -> OriginResponse:
        url = self.url_for(request.key)
        headers = [
            (k, v) for k, v in request.headers if k.lower() not in _HOP_HEADERS
        ]
        outgoing = self.client.build_request(
            request.method, url, headers=headers,
            content=request.body or None,
        )
        try:
            response = await self.client.send(outgoing, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.warning(
                f"Origin fetch failed for {url}: {e}",
                extra={"resource_key": request.key},
            )
            raise OriginFetchFailedError(
                str(url), type(e).__name__,
                context=ErrorContext(resource_key=request.key),
            )
        stored = StoredResponse(
            url=str(response.url),
            status_code=response.status_code,
            body=response.content,
            headers=list(response.headers.multi_items()),
        )
        return OriginResponse(stored, self.is_same_origin(response.url))
