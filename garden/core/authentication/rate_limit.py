import time

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from garden import settings
from garden.common.exceptions import APIException, api_exception_handler
from garden.core.authentication.constants import AuthErrorCodeEnum

AUTH_RATE_LIMIT_SCOPE = 'auth'

# Keyed on the socket peer. Behind a load balancer uvicorn's --proxy-headers
# with --forwarded-allow-ips rewrites the peer from trusted hops only
limiter = Limiter(
    key_func=get_remote_address,
    strategy='moving-window',
    storage_uri=settings.AUTH_RATE_LIMIT_STORAGE_URI,
    enabled=settings.AUTH_RATE_LIMIT_ENABLED,
)


def auth_rate_limit() -> str:
    return f'{settings.AUTH_RATE_LIMIT_MAX_REQUESTS}/{settings.AUTH_RATE_LIMIT_WINDOW_SECONDS} seconds'


# One budget per client shared by every credential and code route
limit_auth_requests = limiter.shared_limit(auth_rate_limit, scope=AUTH_RATE_LIMIT_SCOPE)


def get_retry_after_seconds(request: Request) -> int:
    current_limit = getattr(request.state, 'view_rate_limit', None)
    if current_limit is None:
        return settings.AUTH_RATE_LIMIT_WINDOW_SECONDS

    item, identifiers = current_limit
    reset_at, _remaining = request.app.state.limiter.limiter.get_window_stats(item, *identifiers)
    return max(int(reset_at - time.time()) + 1, 1)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    user_ip = get_remote_address(request)
    logger.warning(f'Auth rate limit hit for {user_ip}')
    return await api_exception_handler(
        request,
        APIException(
            code=status.HTTP_429_TOO_MANY_REQUESTS,
            message='Too many authentication attempts, please try again later',
            error_code=AuthErrorCodeEnum.AUTH_RATE_LIMIT.value,
            extra={'retryAfter': get_retry_after_seconds(request)},
        ),
    )
