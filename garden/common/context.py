"""
Used to track global application context
User information
Request information
Used for request logging and error reporting
"""

from contextvars import ContextVar, Token
from typing import Any, Dict

from sentry_sdk import set_tag as set_sentry_tag
from sentry_sdk import set_user as set_sentry_user

from garden.common.enum import BaseEnum

_app_context: ContextVar[Dict[str, Any] | None] = ContextVar('_app_context', default=None)

_user_type_key = 'user_type'
_user_id_key = 'user_id'
_request_id_key = 'request_id'
_unknown = 'UNKNOWN'


class AppContextUserType(BaseEnum):
    UNKNOWN = _unknown  # Default but should be overridden by every entry point
    USER = 'U'  # Request made by an authenticated account
    ANONYMOUS = 'N'  # Register / login / verify before a session exists
    SYSTEM = 'S'  # Scheduled maintenance such as the code sweep


def reset(token: Token[Dict[str, Any] | None]) -> None:
    _app_context.reset(token)


def initialize(
    user_type: AppContextUserType = AppContextUserType.UNKNOWN,
    user_id: str | None = None,
    request_id: str | None = None,
) -> Token[Dict[str, Any] | None]:
    context = {
        _user_type_key: user_type,
        _user_id_key: user_id,
        _request_id_key: request_id,
    }
    return _app_context.set(context)


def _get_initialized() -> Dict[str, Any]:
    app_ctx = _app_context.get()
    if app_ctx is None:
        raise RuntimeError('Application context not initialized')
    return app_ctx


def set_user(user_type: AppContextUserType, user_id: str | None = None) -> None:
    app_ctx = _get_initialized()
    app_ctx[_user_type_key] = user_type
    app_ctx[_user_id_key] = user_id
    set_sentry_user(dict(id=user_id))


def set_request_id(request_id: str) -> None:
    app_ctx = _get_initialized()
    app_ctx[_request_id_key] = request_id
    set_sentry_tag('request_id', request_id)


def get_safe_request_id() -> str | None:
    """
    safely accessible at anypoint in application lifecycle
    """
    app_ctx = _app_context.get()
    if app_ctx:
        return app_ctx.get(_request_id_key)
    return None


def get_safe_user_id() -> str | None:
    """
    Safely accessible at anypoint in application lifecycle
    """
    app_ctx = _app_context.get()
    if app_ctx:
        return app_ctx.get(_user_id_key)
    return None
