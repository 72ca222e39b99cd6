import datetime
import uuid
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import Argon2Error, InvalidHashError
from fastapi import Depends, status
from loguru import logger
from sqlalchemy.exc import IntegrityError

from garden import settings
from garden.common.exceptions import InternalException
from garden.common.nanoid import NanoIdType
from garden.core.authentication.constants import JWT_SIGNING_ALGORITHM, AuthErrorCodeEnum
from garden.core.authentication.domains import (
    AlreadyVerified,
    AuthResult,
    CodeSentResult,
    EmailVerified,
    PhoneVerified,
    RegistrationResult,
    SessionToken,
    TokenContent,
    TwoFactorChallenge,
)
from garden.core.user import UserCreate, UserNotFound, UserRead, UserService, UserSummary
from garden.core.verification.constants import DeliveryChannelEnum
from garden.core.verification.delivery import DeliveryFailed
from garden.core.verification.domains import CodeDeliveryFailed, CodeRejected, SendOutcome, VerifyOutcome
from garden.core.verification.service import VerificationService
from garden.platform.sms import format_phone_number


class AuthFlowError(InternalException):
    """
    A transition the auth flow refused. Carries everything the router
    needs to answer the client.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = AuthErrorCodeEnum.VALIDATION_ERROR.value

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        extra: dict[str, Any] | None = None,
    ):
        super().__init__(message=message)
        self.error_code = error_code or self.default_code
        self.extra = extra or {}


class UserAlreadyExists(AuthFlowError):
    default_detail = 'User already exists'
    default_code = AuthErrorCodeEnum.USER_EXISTS.value


class PasswordFailsPolicyCheck(AuthFlowError):
    default_detail = 'Password does not meet the minimum requirements'


class InvalidCredentials(AuthFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid email or password'
    default_code = AuthErrorCodeEnum.INVALID_CREDENTIALS.value


class AuthUserNotFound(AuthFlowError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'User not found'
    default_code = AuthErrorCodeEnum.USER_NOT_FOUND.value


class AccountInactive(AuthFlowError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Account is not active'
    default_code = AuthErrorCodeEnum.ACCOUNT_INACTIVE.value


class EmailNotVerified(AuthFlowError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Please verify your email before signing in'
    default_code = AuthErrorCodeEnum.EMAIL_NOT_VERIFIED.value


class AlreadyVerifiedError(AuthFlowError):
    default_detail = 'Already verified'
    default_code = AuthErrorCodeEnum.ALREADY_VERIFIED.value


class PhoneRequired(AuthFlowError):
    default_detail = 'No phone number on this account'
    default_code = AuthErrorCodeEnum.PHONE_REQUIRED.value


class PhoneNotVerified(AuthFlowError):
    default_detail = 'Verify your phone number before enabling SMS codes'
    default_code = AuthErrorCodeEnum.PHONE_NOT_VERIFIED.value


class TwoFactorNotEnabled(AuthFlowError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Two-factor authentication is not enabled for this account'
    default_code = AuthErrorCodeEnum.TWO_FACTOR_NOT_ENABLED.value


class CodeVerificationFailed(AuthFlowError):
    """error_code is the rejection's error kind e.g. CODE_EXPIRED"""


class CodeDeliveryError(AuthFlowError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Failed to send code'
    default_code = AuthErrorCodeEnum.DELIVERY_FAILED.value


class AuthTokenInvalid(InternalException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = AuthErrorCodeEnum.INVALID_TOKEN.value


class AuthTokenExpired(AuthTokenInvalid):
    default_code = AuthErrorCodeEnum.TOKEN_EXPIRED.value


class AuthenticationService:
    """
    register -> verify email -> login -> (2FA) -> session token.

    No flow state is kept between requests. Each transition re-derives
    where the account stands from its verification and 2FA flags.
    """

    _password_hasher = PasswordHasher()
    _dummy_password_hash: str | None = None

    def __init__(self, user_service: UserService, verification_service: VerificationService):
        self.user_service = user_service
        self.verification_service = verification_service

    @classmethod
    def factory(
        cls, verification_service: VerificationService = Depends(VerificationService.factory)
    ) -> 'AuthenticationService':
        return cls(
            user_service=UserService.factory(),
            verification_service=verification_service,
        )

    def register(self, name: str, email: str, password: str, phone: str | None = None) -> RegistrationResult:
        if self.user_service.email_exists(email):
            raise UserAlreadyExists(message='User already exists')

        self.password_meets_policy(password)
        skip_verification = not settings.REQUIRE_EMAIL_VERIFICATION
        try:
            user = self.user_service.create_user(
                UserCreate(
                    name=name,
                    email=email,
                    hashed_password=self.hash_password(password),
                    phone=format_phone_number(phone) if phone else None,
                    email_verified=skip_verification,
                    email_verified_at=datetime.datetime.now(tz=datetime.timezone.utc) if skip_verification else None,
                )
            )
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            raise UserAlreadyExists(message='User already exists')

        logger.info(f'Registered user {user.id}')
        if skip_verification:
            session_token = self.issue_session_token(user.id)
            return RegistrationResult(
                message='Registration successful',
                user=user.to_summary(),
                verification_sent=False,
                token=session_token.token,
            )

        outcome = self.verification_service.send_email_verification(user.email, user.name)
        if isinstance(outcome, CodeDeliveryFailed):
            # The account stands, the user can ask for another code
            logger.warning(f'Verification email for {user.id} not sent: {outcome.error}')
            return RegistrationResult(
                message=(
                    'Registration successful but the verification email could not be sent. '
                    'Please request a new code.'
                ),
                user=user.to_summary(),
                verification_sent=False,
            )

        return RegistrationResult(
            message='Registration successful. Please check your email for a verification code.',
            user=user.to_summary(),
            verification_sent=True,
            expires_in=outcome.expires_in,
        )

    def login(self, email: str, password: str) -> AuthResult | TwoFactorChallenge:
        user = self.user_service.get_user_for_email_or_none(email)
        if user is None:
            # Spend the same hashing time as a real check
            self.is_password_match(password, self._get_dummy_password_hash())
            raise InvalidCredentials

        if not self.is_password_match(password, user.hashed_password):
            raise InvalidCredentials

        if not user.is_active:
            raise AccountInactive

        if settings.REQUIRE_EMAIL_VERIFICATION and not user.email_verified:
            raise EmailNotVerified(extra={'email': user.email})

        if user.two_factor_enabled:
            channel, identifier = self._get_two_factor_destination(user)
            outcome = self.verification_service.send_two_factor_code(identifier, channel, user.name)
            self._raise_for_delivery(outcome)
            return TwoFactorChallenge(
                message=outcome.message,
                method=channel,
                email=user.email,
                expires_in=outcome.expires_in,
            )

        return self._sign_in(user, message='Login successful')

    def verify_email(self, email: str, code: str) -> AuthResult | EmailVerified | AlreadyVerified:
        user = self._get_user_for_email(email)
        if user.email_verified:
            return AlreadyVerified(message='Email already verified')
        # Refused before the code is consumed
        if not user.is_active:
            raise AccountInactive

        outcome = self.verification_service.verify_email_code(user.email, code)
        self._raise_for_rejection(outcome)

        if self.user_service.mark_email_verified(user.id):
            self._send_welcome(lambda: self.verification_service.delivery.send_welcome_email(user.email, user.name))
        else:
            logger.info(f'Email for {user.id} was verified by a concurrent request')

        user = self.user_service.get_user_for_id(user.id)
        if user.two_factor_enabled:
            return EmailVerified(message='Email verified successfully, please sign in', user=user.to_summary())
        return self._sign_in(user, message='Email verified successfully')

    def resend_verification(self, email: str, channel: DeliveryChannelEnum) -> CodeSentResult:
        user = self._get_user_for_email(email)
        if DeliveryChannelEnum(channel) == DeliveryChannelEnum.SMS:
            if not user.phone:
                raise PhoneRequired
            if user.phone_verified:
                raise AlreadyVerifiedError(message='Phone is already verified')
            outcome = self.verification_service.send_sms_verification(user.phone, user.name)
        else:
            if user.email_verified:
                raise AlreadyVerifiedError(message='Email is already verified')
            outcome = self.verification_service.send_email_verification(user.email, user.name)

        self._raise_for_delivery(outcome)
        return CodeSentResult(message=outcome.message, expires_in=outcome.expires_in)

    def verify_phone(self, email: str, code: str) -> PhoneVerified | AlreadyVerified:
        user = self._get_user_for_email(email)
        if not user.phone:
            raise PhoneRequired
        if user.phone_verified:
            return AlreadyVerified(message='Phone already verified')

        outcome = self.verification_service.verify_sms_code(user.phone, code)
        self._raise_for_rejection(outcome)

        if self.user_service.mark_phone_verified(user.id):
            self._send_welcome(lambda: self.verification_service.delivery.send_welcome_sms(user.phone, user.name))

        user = self.user_service.get_user_for_id(user.id)
        return PhoneVerified(message='Phone verified successfully', user=user.to_summary())

    def verify_two_factor(self, email: str, code: str, channel: DeliveryChannelEnum | None = None) -> AuthResult:
        user = self._get_user_for_email(email)
        if not user.is_active:
            raise AccountInactive
        if not user.email_verified:
            raise EmailNotVerified
        if not user.two_factor_enabled:
            raise TwoFactorNotEnabled

        channel, identifier = self._get_two_factor_destination(user, channel)
        outcome = self.verification_service.verify_two_factor_code(identifier, code, channel)
        self._raise_for_rejection(outcome)
        return self._sign_in(user, message='Login successful')

    def update_two_factor(self, user: UserRead, enabled: bool, method: DeliveryChannelEnum) -> UserSummary:
        method = DeliveryChannelEnum(method)
        if enabled and method == DeliveryChannelEnum.SMS and not (user.phone and user.phone_verified):
            raise PhoneNotVerified
        updated = self.user_service.update_two_factor(user.id, enabled=enabled, method=method)
        logger.info(f'Two-factor for {user.id} set to enabled={enabled} method={method.value}')
        return updated.to_summary()

    def issue_session_token(self, user_id: NanoIdType) -> SessionToken:
        session_token = self.create_session_token(user_id)
        self.user_service.record_login(user_id)
        return session_token

    @classmethod
    def create_session_token(cls, user_id: NanoIdType, secret_key: str | None = None) -> SessionToken:
        now = datetime.datetime.now(tz=datetime.timezone.utc)
        expires_at = now + settings.AUTH_SETTINGS['SESSION_TOKEN_LIFETIME']
        jwt_content = {
            'jti': str(uuid.uuid4()),
            'sub': user_id,
            'iat': int(now.timestamp()),
            'exp': int(expires_at.timestamp()),
            'iss': settings.JWT_ISSUER,
            'aud': settings.JWT_AUDIENCE,
        }
        encoded_jwt = jwt.encode(jwt_content, secret_key or settings.SECRET_KEY, algorithm=JWT_SIGNING_ALGORITHM)
        return SessionToken(token=encoded_jwt, expires_at=expires_at)

    @classmethod
    def verify_session_token(cls, token: str | None) -> TokenContent:
        if not token or not isinstance(token, str):
            raise AuthTokenInvalid(message='Token missing')

        try:
            decoded_token = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[JWT_SIGNING_ALGORITHM],
                audience=settings.JWT_AUDIENCE,
                issuer=settings.JWT_ISSUER,
                options={'require': ['exp', 'sub', 'iat']},
            )
        except jwt.ExpiredSignatureError:
            raise AuthTokenExpired(message='Token expired')
        except jwt.InvalidTokenError:
            raise AuthTokenInvalid(message='Token invalid')

        return TokenContent(**decoded_token)

    @classmethod
    def is_password_match(cls, plain_password: str, hashed_password: str) -> bool:
        try:
            return cls._password_hasher.verify(hashed_password, plain_password)
        except (Argon2Error, InvalidHashError):
            return False

    @classmethod
    def hash_password(cls, password: str) -> str:
        return cls._password_hasher.hash(password)

    @classmethod
    def password_meets_policy(cls, password: str) -> None:
        min_length = settings.AUTH_SETTINGS['PASSWORD_MIN_LENGTH']
        if len(password) < min_length:
            raise PasswordFailsPolicyCheck(message=f'Password must be at least {min_length} characters long')

    @classmethod
    def _get_dummy_password_hash(cls) -> str:
        if cls._dummy_password_hash is None:
            cls._dummy_password_hash = cls.hash_password(uuid.uuid4().hex)
        return cls._dummy_password_hash

    def _get_user_for_email(self, email: str) -> UserRead:
        try:
            return self.user_service.get_user_for_email(email)
        except UserNotFound:
            raise AuthUserNotFound

    def _get_two_factor_destination(
        self, user: UserRead, channel: DeliveryChannelEnum | None = None
    ) -> tuple[DeliveryChannelEnum, str]:
        channel = DeliveryChannelEnum(channel or user.two_factor_method)
        if channel == DeliveryChannelEnum.SMS:
            if not user.phone:
                raise PhoneRequired
            return channel, user.phone
        return channel, user.email

    def _sign_in(self, user: UserRead, message: str) -> AuthResult:
        session_token = self.issue_session_token(user.id)
        return AuthResult(message=message, token=session_token.token, user=user.to_summary())

    @staticmethod
    def _send_welcome(send) -> None:
        """Welcome messages are best effort, the transition already happened"""
        try:
            send()
        except DeliveryFailed as exc:
            logger.warning(f'Welcome message not sent: {exc.message}')

    @staticmethod
    def _raise_for_delivery(outcome: SendOutcome) -> None:
        if isinstance(outcome, CodeDeliveryFailed):
            raise CodeDeliveryError(message='Failed to send verification code', extra={'error': outcome.error})

    @staticmethod
    def _raise_for_rejection(outcome: VerifyOutcome) -> None:
        if isinstance(outcome, CodeRejected):
            extra = {}
            if outcome.attempts_remaining is not None:
                extra['attemptsRemaining'] = outcome.attempts_remaining
            raise CodeVerificationFailed(message=outcome.error, error_code=outcome.error_kind, extra=extra)
