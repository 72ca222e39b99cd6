from fastapi import Request
from loguru import logger

from garden.core.user.domains import normalize_email
from garden.core.verification.constants import (
    CODE_LIFETIMES,
    ERROR_KIND_FOR_STATUS,
    CodeCheckStatusEnum,
    CodePurposeEnum,
    DeliveryChannelEnum,
)
from garden.core.verification.delivery import DeliveryFailed, DeliveryGateway
from garden.core.verification.domains import (
    CodeAccepted,
    CodeCheck,
    CodeDeliveryFailed,
    CodeRejected,
    CodeSent,
    CodeStatus,
    SendOutcome,
    VerifyOutcome,
)
from garden.core.verification.store import AbstractCodeStore
from garden.core.verification.utils import generate_code
from garden.platform.sms import format_phone_number, mask_phone_number

REJECTION_MESSAGES = {
    CodeCheckStatusEnum.NOT_FOUND: 'No verification code found. Please request a new code.',
    CodeCheckStatusEnum.EXPIRED: 'Verification code has expired. Please request a new code.',
    CodeCheckStatusEnum.TOO_MANY_ATTEMPTS: 'Too many failed attempts. Please request a new code.',
}


def normalize_identifier(identifier: str, channel: DeliveryChannelEnum) -> str:
    if DeliveryChannelEnum(channel) == DeliveryChannelEnum.SMS:
        return format_phone_number(identifier)
    return normalize_email(identifier)


class VerificationService:
    """
    Issues codes into the code store, hands them to the delivery gateway
    and checks submitted codes. Expected failures (delivery errors, wrong
    or stale codes) come back as tagged results, never as exceptions.
    """

    def __init__(self, code_store: AbstractCodeStore, delivery: DeliveryGateway):
        self.code_store = code_store
        self.delivery = delivery

    @classmethod
    def factory(cls, request: Request) -> 'VerificationService':
        return cls(
            code_store=request.app.state.code_store,
            delivery=DeliveryGateway.factory(),
        )

    def send_email_verification(self, email: str, name: str) -> SendOutcome:
        email = normalize_identifier(email, DeliveryChannelEnum.EMAIL)
        code, lifetime_minutes = self._issue(email, CodePurposeEnum.EMAIL_VERIFICATION, DeliveryChannelEnum.EMAIL)
        try:
            self.delivery.send_verification_email(email, name, code, lifetime_minutes)
        except DeliveryFailed as exc:
            return CodeDeliveryFailed(error=f'Failed to send verification email: {exc.message}')

        logger.info(f'Verification code sent to {email}')
        return self._sent('Verification code sent to your email', CodePurposeEnum.EMAIL_VERIFICATION)

    def send_sms_verification(self, phone: str, name: str) -> SendOutcome:
        phone = normalize_identifier(phone, DeliveryChannelEnum.SMS)
        code, lifetime_minutes = self._issue(phone, CodePurposeEnum.EMAIL_VERIFICATION, DeliveryChannelEnum.SMS)
        try:
            self.delivery.send_verification_sms(phone, name, code, lifetime_minutes)
        except DeliveryFailed as exc:
            return CodeDeliveryFailed(error=f'Failed to send verification SMS: {exc.message}')

        logger.info(f'Verification code sent to {mask_phone_number(phone)}')
        return self._sent('Verification code sent to your phone', CodePurposeEnum.EMAIL_VERIFICATION)

    def send_two_factor_code(self, identifier: str, channel: DeliveryChannelEnum, name: str) -> SendOutcome:
        channel = DeliveryChannelEnum(channel)
        identifier = normalize_identifier(identifier, channel)
        code, lifetime_minutes = self._issue(identifier, CodePurposeEnum.TWO_FACTOR, channel)
        try:
            self.delivery.send_two_factor_code(identifier, channel, name, code, lifetime_minutes)
        except DeliveryFailed as exc:
            return CodeDeliveryFailed(error=f'Failed to send 2FA code: {exc.message}')

        return self._sent(f'2FA code sent to your {channel.value}', CodePurposeEnum.TWO_FACTOR)

    def verify_email_code(self, email: str, code: str) -> VerifyOutcome:
        return self._verify(email, CodePurposeEnum.EMAIL_VERIFICATION, DeliveryChannelEnum.EMAIL, code)

    def verify_sms_code(self, phone: str, code: str) -> VerifyOutcome:
        return self._verify(phone, CodePurposeEnum.EMAIL_VERIFICATION, DeliveryChannelEnum.SMS, code)

    def verify_two_factor_code(self, identifier: str, code: str, channel: DeliveryChannelEnum) -> VerifyOutcome:
        return self._verify(identifier, CodePurposeEnum.TWO_FACTOR, channel, code)

    def get_status(self, identifier: str, purpose: CodePurposeEnum, channel: DeliveryChannelEnum) -> CodeStatus:
        return self.code_store.get_status(normalize_identifier(identifier, channel), purpose, channel)

    def _issue(self, identifier: str, purpose: CodePurposeEnum, channel: DeliveryChannelEnum) -> tuple[str, int]:
        """
        Stores a fresh code before delivery is attempted, so a failed send
        still leaves a valid code behind
        """
        lifetime_minutes = int(CODE_LIFETIMES[purpose].total_seconds() // 60)
        code = generate_code()
        self.code_store.store(identifier, purpose, channel, code, lifetime_minutes)
        return code, lifetime_minutes

    def _sent(self, message: str, purpose: CodePurposeEnum) -> CodeSent:
        return CodeSent(message=message, expires_in=int(CODE_LIFETIMES[purpose].total_seconds() * 1000))

    def _verify(
        self, identifier: str, purpose: CodePurposeEnum, channel: DeliveryChannelEnum, code: str
    ) -> VerifyOutcome:
        check = self.code_store.verify(normalize_identifier(identifier, channel), purpose, channel, code)
        return self._to_outcome(check)

    @staticmethod
    def _to_outcome(check: CodeCheck) -> VerifyOutcome:
        status = CodeCheckStatusEnum(check.status)
        if status == CodeCheckStatusEnum.OK:
            return CodeAccepted()

        if status == CodeCheckStatusEnum.MISMATCH:
            error = f'Invalid code. {check.attempts_remaining} attempts remaining.'
        else:
            error = REJECTION_MESSAGES[status]

        return CodeRejected(
            error=error,
            error_kind=ERROR_KIND_FOR_STATUS[status],
            attempts_remaining=check.attempts_remaining,
        )
