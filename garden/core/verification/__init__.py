from garden.core.verification.constants import (
    CodeCheckStatusEnum,
    CodePurposeEnum,
    DeliveryChannelEnum,
    VerificationErrorKindEnum,
)
from garden.core.verification.domains import (
    CodeAccepted,
    CodeCheck,
    CodeDeliveryFailed,
    CodeRejected,
    CodeSent,
    CodeStatus,
    PendingCode,
)
from garden.core.verification.store import AbstractCodeStore, InMemoryCodeStore

# service, delivery and sweeper depend on core.user, which imports the
# constants above, so they are imported from their modules directly
__all__ = [
    'AbstractCodeStore',
    'CodeAccepted',
    'CodeCheck',
    'CodeCheckStatusEnum',
    'CodeDeliveryFailed',
    'CodePurposeEnum',
    'CodeRejected',
    'CodeSent',
    'CodeStatus',
    'DeliveryChannelEnum',
    'InMemoryCodeStore',
    'PendingCode',
    'VerificationErrorKindEnum',
]
