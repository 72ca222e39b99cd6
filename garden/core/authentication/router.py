from fastapi import APIRouter, Depends, Request, status
from loguru import logger

from garden.common.exceptions import APIException
from garden.core.authentication.domains import (
    AlreadyVerified,
    AuthResult,
    CodeSentResult,
    CurrentUser,
    EmailVerified,
    LoginPayload,
    PhoneVerified,
    RegisterPayload,
    RegistrationResult,
    ResendVerificationPayload,
    TwoFactorChallenge,
    TwoFactorSettingsPayload,
    VerifyCodePayload,
    VerifyTwoFactorPayload,
)
from garden.core.authentication.guards import AuthenticatedUserGuard
from garden.core.authentication.rate_limit import limit_auth_requests
from garden.core.authentication.services.authentication_service import AuthenticationService, AuthFlowError
from garden.core.user import UserRead

router = APIRouter()


def _to_api_exception(exc: AuthFlowError) -> APIException:
    return APIException(
        message=exc.message,
        code=exc.status_code,
        error_code=exc.error_code,
        extra=exc.extra,
    )


@router.post('/register', status_code=status.HTTP_201_CREATED)
@limit_auth_requests
def register(
    request: Request,
    payload: RegisterPayload,
    auth_service: AuthenticationService = Depends(AuthenticationService.factory),
) -> RegistrationResult:
    """Create an account and email it a verification code"""
    try:
        return auth_service.register(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            phone=payload.phone,
        )
    except AuthFlowError as exc:
        logger.info(f'Registration refused: {exc.error_code}')
        raise _to_api_exception(exc)


@router.post('/login')
@limit_auth_requests
def login(
    request: Request,
    payload: LoginPayload,
    auth_service: AuthenticationService = Depends(AuthenticationService.factory),
) -> AuthResult | TwoFactorChallenge:
    """
    If the account has 2FA enabled a code is dispatched and the response
    only carries requires2FA; the token comes from /verify-2fa
    """
    try:
        return auth_service.login(email=payload.email, password=payload.password)
    except AuthFlowError as exc:
        raise _to_api_exception(exc)


@router.post('/verify-email')
@limit_auth_requests
def verify_email(
    request: Request,
    payload: VerifyCodePayload,
    auth_service: AuthenticationService = Depends(AuthenticationService.factory),
) -> AuthResult | EmailVerified | AlreadyVerified:
    try:
        return auth_service.verify_email(email=payload.email, code=payload.code)
    except AuthFlowError as exc:
        raise _to_api_exception(exc)


@router.post('/resend-verification')
@limit_auth_requests
def resend_verification(
    request: Request,
    payload: ResendVerificationPayload,
    auth_service: AuthenticationService = Depends(AuthenticationService.factory),
) -> CodeSentResult:
    """Issue a fresh code, replacing any code still pending"""
    try:
        return auth_service.resend_verification(email=payload.email, channel=payload.type)
    except AuthFlowError as exc:
        raise _to_api_exception(exc)


@router.post('/verify-phone')
@limit_auth_requests
def verify_phone(
    request: Request,
    payload: VerifyCodePayload,
    auth_service: AuthenticationService = Depends(AuthenticationService.factory),
) -> PhoneVerified | AlreadyVerified:
    try:
        return auth_service.verify_phone(email=payload.email, code=payload.code)
    except AuthFlowError as exc:
        raise _to_api_exception(exc)


@router.post('/verify-2fa')
@limit_auth_requests
def verify_two_factor(
    request: Request,
    payload: VerifyTwoFactorPayload,
    auth_service: AuthenticationService = Depends(AuthenticationService.factory),
) -> AuthResult:
    try:
        return auth_service.verify_two_factor(email=payload.email, code=payload.code, channel=payload.type)
    except AuthFlowError as exc:
        raise _to_api_exception(exc)


@router.get('/me')
def get_me(user: UserRead = AuthenticatedUserGuard()) -> CurrentUser:
    return CurrentUser(user=user.to_summary())


@router.put('/two-factor')
def update_two_factor(
    payload: TwoFactorSettingsPayload,
    user: UserRead = AuthenticatedUserGuard(),
    auth_service: AuthenticationService = Depends(AuthenticationService.factory),
) -> CurrentUser:
    try:
        summary = auth_service.update_two_factor(user, enabled=payload.enabled, method=payload.method)
    except AuthFlowError as exc:
        raise _to_api_exception(exc)
    return CurrentUser(user=summary)
