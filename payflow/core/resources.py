"""Resources — request/response values for the cache-first layer and key rules.

Invariants:
    - A StoredResponse owns its body; clone() yields an independent copy
    - Resource keys are absolute paths plus query string, no scheme or host
    - Manifest entries "./x" and "/x" normalize to the same key
    - Only GET requests are reads; every other method is a mutation

Design Decisions:
    - Body read once at the transport boundary, then duplicated as values:
      one copy returned to the requester, one written to the store
"""

from dataclasses import dataclass, field
from urllib.parse import urlsplit

from payflow.core.domain_types import ResourceKey


@dataclass(frozen=True)
class StoredResponse:
    url: str
    status_code: int
    body: bytes
    headers: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str | None:
        for name, value in self.headers:
            if name.lower() == "content-type":
                return value
        return None

    def clone(self) -> "StoredResponse":
        return StoredResponse(
            url=self.url,
            status_code=self.status_code,
            body=bytes(self.body),
            headers=list(self.headers),
        )

    def for_storage(self) -> "StoredResponse":
        """Independent copy without transport-only headers."""
        return StoredResponse(
            url=self.url,
            status_code=self.status_code,
            body=bytes(self.body),
            headers=storable_headers(self.headers),
        )


def normalize_resource_key(identifier: str) -> ResourceKey:
    """Map a manifest entry or request URL to its store key."""
    parts = urlsplit(identifier)
    path = parts.path or "/"
    if path.startswith("./"):
        path = path[1:]
    elif path == ".":
        path = "/"
    elif not path.startswith("/"):
        path = "/" + path
    if parts.query:
        path = f"{path}?{parts.query}"
    return ResourceKey(path)


# Describe one transport hop; httpx has already decoded the body.
_TRANSPORT_HEADERS = frozenset({
    "connection", "keep-alive", "transfer-encoding", "content-encoding",
    "content-length", "upgrade",
})


def replay_headers(headers: list[tuple[str, str]]) -> list[tuple[str, str]]:
    return [(k, v) for k, v in headers if k.lower() not in _TRANSPORT_HEADERS]


def storable_headers(headers: list[tuple[str, str]]) -> list[tuple[str, str]]:
    return [(k, v) for k, v in replay_headers(headers) if k.lower() != "set-cookie"]


@dataclass(frozen=True)
class ResourceRequest:
    method: str
    key: ResourceKey
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def is_read(self) -> bool:
        return self.method.upper() == "GET"
