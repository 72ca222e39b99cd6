from garden.common.enum import BaseEnum


class AuthErrorCodeEnum(BaseEnum):
    """
    Machine readable codes returned by the /api/auth routes
    """

    USER_EXISTS = 'USER_EXISTS'
    VALIDATION_ERROR = 'VALIDATION_ERROR'
    INVALID_CREDENTIALS = 'INVALID_CREDENTIALS'
    USER_NOT_FOUND = 'USER_NOT_FOUND'
    EMAIL_NOT_VERIFIED = 'EMAIL_NOT_VERIFIED'
    ACCOUNT_INACTIVE = 'ACCOUNT_INACTIVE'
    ALREADY_VERIFIED = 'ALREADY_VERIFIED'
    PHONE_REQUIRED = 'PHONE_REQUIRED'
    PHONE_NOT_VERIFIED = 'PHONE_NOT_VERIFIED'
    TWO_FACTOR_NOT_ENABLED = 'TWO_FACTOR_NOT_ENABLED'
    DELIVERY_FAILED = 'DELIVERY_FAILED'
    NO_TOKEN = 'NO_TOKEN'
    INVALID_TOKEN = 'INVALID_TOKEN'
    TOKEN_EXPIRED = 'TOKEN_EXPIRED'
    AUTH_RATE_LIMIT = 'AUTH_RATE_LIMIT'


# Basic name@domain.tld shape, full RFC validation is left to pydantic's EmailStr
EMAIL_PATTERN = r'^[^\s@]+@[^\s@]+\.[^\s@]+$'

JWT_SIGNING_ALGORITHM = 'HS256'
