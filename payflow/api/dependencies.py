"""API Dependencies — resolve lifespan-built components from app.state.

Invariants:
    - Components are created once in the lifespan (main.py), never per request
    - A missing component means startup did not run: fail loudly

Design Decisions:
    - app.state over module globals: tests build their own app state without
      monkeypatching modules
"""

from fastapi import Request

from payflow.services.fetch_interceptor import CacheFirstInterceptor
from payflow.services.payment_pipeline import PaymentPipeline
from payflow.services.resource_cache_manager import ResourceCacheManager


def get_pipeline(request: Request) -> PaymentPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise RuntimeError("Payment pipeline not initialized")
    return pipeline


def get_interceptor(request: Request) -> CacheFirstInterceptor:
    interceptor = getattr(request.app.state, "interceptor", None)
    if interceptor is None:
        raise RuntimeError("Fetch interceptor not initialized")
    return interceptor


def get_cache_manager(request: Request) -> ResourceCacheManager | None:
    return getattr(request.app.state, "cache_manager", None)
