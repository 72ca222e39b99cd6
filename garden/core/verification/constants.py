from datetime import timedelta

from garden import settings
from garden.common.enum import BaseEnum


class DeliveryChannelEnum(BaseEnum):
    EMAIL = 'email'
    SMS = 'sms'


class CodePurposeEnum(BaseEnum):
    EMAIL_VERIFICATION = 'email_verification'
    TWO_FACTOR = 'two_factor'


class CodeCheckStatusEnum(BaseEnum):
    """
    Raw outcome of checking a code against the store
    """

    OK = 'OK'
    NOT_FOUND = 'NOT_FOUND'
    EXPIRED = 'EXPIRED'
    TOO_MANY_ATTEMPTS = 'TOO_MANY_ATTEMPTS'
    MISMATCH = 'MISMATCH'


class VerificationErrorKindEnum(BaseEnum):
    """
    Caller facing reason a submitted code was rejected
    """

    CODE_NOT_FOUND = 'CODE_NOT_FOUND'
    CODE_EXPIRED = 'CODE_EXPIRED'
    TOO_MANY_ATTEMPTS = 'TOO_MANY_ATTEMPTS'
    INVALID_CODE = 'INVALID_CODE'


CODE_LENGTH = 6

CODE_LIFETIMES: dict[CodePurposeEnum, timedelta] = {
    CodePurposeEnum.EMAIL_VERIFICATION: settings.AUTH_SETTINGS['VERIFICATION_CODE_LIFETIME'],
    CodePurposeEnum.TWO_FACTOR: settings.AUTH_SETTINGS['TWO_FACTOR_CODE_LIFETIME'],
}

CODE_MAX_ATTEMPTS: dict[CodePurposeEnum, int] = {
    CodePurposeEnum.EMAIL_VERIFICATION: settings.AUTH_SETTINGS['VERIFICATION_CODE_MAX_ATTEMPTS'],
    CodePurposeEnum.TWO_FACTOR: settings.AUTH_SETTINGS['TWO_FACTOR_CODE_MAX_ATTEMPTS'],
}

ERROR_KIND_FOR_STATUS: dict[CodeCheckStatusEnum, VerificationErrorKindEnum] = {
    CodeCheckStatusEnum.NOT_FOUND: VerificationErrorKindEnum.CODE_NOT_FOUND,
    CodeCheckStatusEnum.EXPIRED: VerificationErrorKindEnum.CODE_EXPIRED,
    CodeCheckStatusEnum.TOO_MANY_ATTEMPTS: VerificationErrorKindEnum.TOO_MANY_ATTEMPTS,
    CodeCheckStatusEnum.MISMATCH: VerificationErrorKindEnum.INVALID_CODE,
}
