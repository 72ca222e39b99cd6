from typing import Optional

from fastapi import Depends, Request, params, status
from fastapi.security import OAuth2PasswordBearer
from fastapi.security.utils import get_authorization_scheme_param

from garden.common import context
from garden.common.exceptions import APIException
from garden.core.authentication.constants import AuthErrorCodeEnum
from garden.core.authentication.services.authentication_service import (
    AuthenticationService,
    AuthTokenExpired,
    AuthTokenInvalid,
)
from garden.core.user import UserNotFound, UserRead, UserService


class OAuth2Token(OAuth2PasswordBearer):
    async def __call__(self, request: Request) -> Optional[str]:
        # Check for existence of raw token
        authorization = request.headers.get('Authorization')
        scheme, token = get_authorization_scheme_param(authorization)
        if not authorization or scheme.lower() != 'bearer' or not token:
            if self.auto_error:
                raise APIException(
                    code=status.HTTP_401_UNAUTHORIZED,
                    message='No token provided',
                    error_code=AuthErrorCodeEnum.NO_TOKEN.value,
                )
            else:
                return None
        return token


oauth = OAuth2Token(
    scheme_name='email-password-authentication',
    tokenUrl='api/auth/login',
    description='Bearer session token issued by login, verify-email or verify-2fa',
)


def authenticate_user(
    token: str = Depends(oauth),
    user_service: UserService = Depends(UserService.factory),
) -> UserRead:
    try:
        token_content = AuthenticationService.verify_session_token(token)
    except AuthTokenExpired:
        raise APIException(
            code=status.HTTP_401_UNAUTHORIZED,
            message='Session expired, please sign in again',
            error_code=AuthErrorCodeEnum.TOKEN_EXPIRED.value,
        )
    except AuthTokenInvalid:
        raise APIException(
            code=status.HTTP_401_UNAUTHORIZED,
            message='Invalid token',
            error_code=AuthErrorCodeEnum.INVALID_TOKEN.value,
        )

    try:
        user = user_service.get_user_for_id(token_content.sub)
    except UserNotFound:
        raise APIException(
            code=status.HTTP_401_UNAUTHORIZED,
            message='User no longer exists',
            error_code=AuthErrorCodeEnum.USER_NOT_FOUND.value,
        )

    if not user.is_active:
        raise APIException(
            code=status.HTTP_401_UNAUTHORIZED,
            message='Account is not active',
            error_code=AuthErrorCodeEnum.ACCOUNT_INACTIVE.value,
        )

    # Update global context with authenticated user
    context.set_user(user_type=context.AppContextUserType.USER, user_id=user.id)
    return user


class AuthenticatedUserGuard(params.Security):
    """
    Resolves the bearer token to the account it was issued for
    in router:
        user: UserRead = AuthenticatedUserGuard()
    """

    def __init__(
        self,
        *,
        use_cache: bool = True,
    ):
        super().__init__(
            dependency=authenticate_user,
            use_cache=use_cache,
        )
