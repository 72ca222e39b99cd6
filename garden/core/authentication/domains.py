import datetime
import re
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from garden import settings
from garden.common.domain import BaseDomain
from garden.core.authentication.constants import EMAIL_PATTERN
from garden.core.user.domains import UserSummary
from garden.core.verification.constants import DeliveryChannelEnum
from garden.platform.sms import is_valid_phone_number


class RegisterPayload(BaseDomain):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str
    phone: str | None = None

    @field_validator('email')
    @classmethod
    def email_has_basic_shape(cls, email: str) -> str:
        if not re.match(EMAIL_PATTERN, email):
            raise ValueError('Please provide a valid email address')
        return email

    @field_validator('password')
    @classmethod
    def password_long_enough(cls, password: str) -> str:
        min_length = settings.AUTH_SETTINGS['PASSWORD_MIN_LENGTH']
        if len(password) < min_length:
            raise ValueError(f'Password must be at least {min_length} characters long')
        return password

    @field_validator('phone')
    @classmethod
    def phone_is_valid(cls, phone: str | None) -> str | None:
        if phone and not is_valid_phone_number(phone):
            raise ValueError('Please provide a valid phone number')
        return phone or None


class LoginPayload(BaseDomain):
    # Not EmailStr, a malformed email must fail the same way as a wrong password
    email: str
    password: str


class VerifyCodePayload(BaseDomain):
    email: str
    code: str = Field(min_length=1, max_length=12)


class ResendVerificationPayload(BaseDomain):
    email: str
    type: DeliveryChannelEnum = DeliveryChannelEnum.EMAIL


class VerifyTwoFactorPayload(VerifyCodePayload):
    # Defaults to the account's configured method
    type: DeliveryChannelEnum | None = None


class TwoFactorSettingsPayload(BaseDomain):
    enabled: bool
    method: DeliveryChannelEnum = DeliveryChannelEnum.EMAIL


class TokenContent(BaseDomain):
    sub: str
    exp: int
    iat: int
    iss: str
    aud: str
    jti: str


class SessionToken(BaseDomain):
    token: str
    expires_at: datetime.datetime


class AuthResult(BaseDomain):
    """
    A completed sign in, carries the bearer token
    """

    success: Literal[True] = True
    message: str
    token: str
    user: UserSummary


class TwoFactorChallenge(BaseDomain):
    """
    Password accepted but a second factor is outstanding, no token yet
    """

    success: Literal[True] = True
    requires_2fa: Literal[True] = Field(default=True, alias='requires2FA')
    message: str
    method: DeliveryChannelEnum
    email: str
    expires_in: int


class EmailVerified(BaseDomain):
    """
    Email confirmed for an account that still owes a second factor, the
    session comes from /login then /verify-2fa
    """

    success: Literal[True] = True
    message: str
    user: UserSummary
    requires_login: Literal[True] = True


class AlreadyVerified(BaseDomain):
    success: Literal[True] = True
    message: str
    already_verified: Literal[True] = True


class RegistrationResult(BaseDomain):
    success: Literal[True] = True
    message: str
    user: UserSummary
    verification_sent: bool
    expires_in: int | None = None
    # Only issued when email verification is switched off
    token: str | None = None


class CodeSentResult(BaseDomain):
    success: Literal[True] = True
    message: str
    expires_in: int


class PhoneVerified(BaseDomain):
    success: Literal[True] = True
    message: str
    user: UserSummary


class CurrentUser(BaseDomain):
    success: Literal[True] = True
    user: UserSummary
