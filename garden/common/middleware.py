from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request

from garden.common import context


class HTTPAppContextMiddleware(BaseHTTPMiddleware):
    """
    Fresh application context per request. Anonymous until a session
    guard resolves the bearer token to a user.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        token = context.initialize(user_type=context.AppContextUserType.ANONYMOUS)
        try:
            return await call_next(request)
        finally:
            context.reset(token)
