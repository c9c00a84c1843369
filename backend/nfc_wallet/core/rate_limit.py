# nfc_wallet/core/rate_limit.py

from fastapi import Request
from limits import parse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from slowapi.wrappers import Limit


def build_limiter(enabled: bool) -> Limiter:
    """One limiter per app, stored on app.state.limiter"""
    return Limiter(key_func=get_remote_address, enabled=enabled)


def rate_limit_dependency(scope: str, setting: str):
    """
    Rate limiting dependency for FastAPI routes.

    The limit string is read from app.state.settings on every request, so
    each app enforces its own configuration.
    """
    def dependency(request: Request):
        limiter: Limiter = request.app.state.limiter
        if not limiter.enabled:
            return

        item = parse(getattr(request.app.state.settings, setting))
        key = get_remote_address(request)
        # Per client IP
        if not limiter.limiter.hit(item, key, scope):
            request.state.view_rate_limit = (item, [key, scope])
            raise RateLimitExceeded(Limit(
                item, get_remote_address, scope,
                per_method=False, methods=None, error_message=None,
                exempt_when=None, cost=1, override_defaults=False,
            ))

    return dependency


register_rate_limit = rate_limit_dependency("register", "register_rate_limit")
social_rate_limit = rate_limit_dependency("social", "social_rate_limit")
