import time
import uuid

from fastapi import status
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request

from garden.common import context

REQUEST_ID_HEADER = 'X-Request-ID'


def get_user_ip_address_from_request(request: Request) -> str:
    """
    Prefer the first hop of x-forwarded-for when behind a proxy, otherwise
    the socket peer
    """
    user_ip = get_user_ip_address_from_header(request.headers.get('x-forwarded-for'))
    if not user_ip and request.client:
        user_ip = request.client.host
    return user_ip


def get_user_ip_address_from_header(forwarded_header: str | None) -> str:
    """
    Expects the result of "x-forwarded-for" which will be
    a list of IPs separated by a ',' accounting for all
    proxy servers encountered
    """
    user_ip = forwarded_header.split(',')[0] if forwarded_header else ''
    return user_ip.strip()


def _get_additional_request_log_meta(request: Request, start_time: float) -> dict:
    return dict(
        endpoint=request['path'],
        user_agent=request.headers.get('user-agent', 'unknown'),
        duration=round((time.time() - start_time), 3),
        http_method=request.method,
        user_ip=get_user_ip_address_from_request(request),
    )


def _get_request_id(request: Request) -> str:
    # Set by the load balancer in deployed environments
    return request.headers.get(REQUEST_ID_HEADER, str(uuid.uuid4()))


class RequestResponseMiddleware(BaseHTTPMiddleware):
    """
    Inject request to context and to loggers downstream of uvicorn
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        start_time = time.time()
        request_id = _get_request_id(request)
        context.set_request_id(request_id)
        summary = f'{request.method.upper()} {request["path"]}'

        with logger.contextualize(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception:
                logger.error(
                    f'{summary} {status.HTTP_500_INTERNAL_SERVER_ERROR}',
                    http_status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    **_get_additional_request_log_meta(request, start_time=start_time),
                )
                raise

            level = response.status_code // 100
            if level == 4:
                log_level = logger.warning
            elif level == 5:
                log_level = logger.error
            else:
                log_level = logger.info

            log_level(
                f'{summary} {response.status_code}',
                http_status_code=response.status_code,
                **_get_additional_request_log_meta(request, start_time=start_time),
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
