from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class InternalException(Exception):
    """
    All internal exceptions should inherit from this. They are reported
    vaguely to the public.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal failure.'
    default_code = 'INTERNAL_FAILURE'

    def __init__(self, message: str | None = None, context: dict[Any, Any] | Any = None):
        self.message = message or self.default_detail
        self.context = context or dict()

    def __str__(self) -> str:
        return f'{self.__class__.__name__}({self.message})'


class APIException(Exception):
    """
    API view layer exceptions
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid Request.'
    default_code = 'INVALID_REQUEST'

    def __init__(
        self,
        message: str | None = None,
        code: int | None = None,
        error_code: str | None = None,
        extra: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_detail
        self.code = code or self.status_code
        self.error_code = error_code or self.default_code
        # Additional camelCase fields merged into the body e.g. attemptsRemaining
        self.extra = extra or {}


def error_content(message: str, error_code: str, **extra: Any) -> dict[str, Any]:
    """
    Shape shared by every failure body so clients can both show `message`
    and branch on `code`
    """
    content = {
        'success': False,
        'message': message,
        'code': error_code,
        'errorCode': error_code,
        'detail': message,
    }
    content.update(extra)
    return content


async def internal_exception_handler(request: Request, exc: InternalException) -> JSONResponse:
    """
    Last line of defence for service exceptions a router did not translate
    """
    logger.exception(exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_content(exc.message, exc.default_code)),
    )


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.code,
        content=jsonable_encoder(error_content(exc.message, exc.error_code, **exc.extra)),
    )


async def inbound_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed or missing request fields are a client error, not a 422 the
    frontend has to special case
    """
    details = []
    for error in exc.errors():
        details.append(
            {
                'loc': error['loc'],
                'message': error['msg'],
                'type': error['type'],
            }
        )

    fields = ', '.join(str(detail['loc'][-1]) for detail in details if detail['loc'])
    message = f'Invalid request: {fields}' if fields else 'Invalid request'
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(error_content(message, 'VALIDATION_ERROR', details=details)),
    )
