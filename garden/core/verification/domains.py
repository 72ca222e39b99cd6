import datetime
from typing import Literal, Union

from garden.common.domain import BaseDomain
from garden.core.verification.constants import (
    CodeCheckStatusEnum,
    CodePurposeEnum,
    DeliveryChannelEnum,
    VerificationErrorKindEnum,
)


class PendingCode(BaseDomain):
    identifier: str
    purpose: CodePurposeEnum
    channel: DeliveryChannelEnum
    code: str
    created_at: datetime.datetime
    expires_at: datetime.datetime
    attempts: int = 0
    max_attempts: int

    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempts - self.attempts, 0)


class CodeCheck(BaseDomain):
    """
    Result of CodeStore.verify. attempts_remaining is only meaningful for MISMATCH.
    """

    status: CodeCheckStatusEnum
    attempts_remaining: int | None = None


class CodeStatus(BaseDomain):
    exists: bool
    is_expired: bool = False
    time_remaining_ms: int = 0
    attempts: int = 0
    max_attempts: int = 0
    attempts_remaining: int = 0


class CodeSent(BaseDomain):
    success: Literal[True] = True
    message: str
    expires_in: int  # milliseconds


class CodeDeliveryFailed(BaseDomain):
    success: Literal[False] = False
    error: str


class CodeAccepted(BaseDomain):
    success: Literal[True] = True
    message: str = 'Code verified successfully'


class CodeRejected(BaseDomain):
    success: Literal[False] = False
    error: str
    error_kind: VerificationErrorKindEnum
    attempts_remaining: int | None = None


SendOutcome = Union[CodeSent, CodeDeliveryFailed]
VerifyOutcome = Union[CodeAccepted, CodeRejected]
