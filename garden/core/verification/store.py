import abc
import datetime
import hmac
import threading
from typing import Callable

from loguru import logger

from garden.core.verification.constants import (
    CODE_MAX_ATTEMPTS,
    CodeCheckStatusEnum,
    CodePurposeEnum,
    DeliveryChannelEnum,
)
from garden.core.verification.domains import CodeCheck, CodeStatus, PendingCode

Clock = Callable[[], datetime.datetime]
CodeKey = tuple[str, str, str]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.timezone.utc)


def codes_match(expected: str, submitted: str) -> bool:
    return hmac.compare_digest(expected.encode(), submitted.strip().encode())


class AbstractCodeStore(abc.ABC):
    """
    Holds at most one pending code per (purpose, channel, identifier).

    verify() is the only way a code leaves the store besides expiry: a
    match consumes it, and so does running out of attempts.
    """

    @abc.abstractmethod
    def store(
        self,
        identifier: str,
        purpose: CodePurposeEnum,
        channel: DeliveryChannelEnum,
        code: str,
        lifetime_minutes: float,
        max_attempts: int | None = None,
    ) -> PendingCode:
        """Insert or overwrite the pending code for the key with attempts reset to 0"""

    @abc.abstractmethod
    def verify(
        self,
        identifier: str,
        purpose: CodePurposeEnum,
        channel: DeliveryChannelEnum,
        code: str,
    ) -> CodeCheck: ...

    @abc.abstractmethod
    def sweep_expired(self) -> int:
        """Delete every entry past its expiry and return how many went"""

    @abc.abstractmethod
    def get_status(
        self,
        identifier: str,
        purpose: CodePurposeEnum,
        channel: DeliveryChannelEnum,
    ) -> CodeStatus: ...

    @staticmethod
    def make_key(identifier: str, purpose: CodePurposeEnum, channel: DeliveryChannelEnum) -> CodeKey:
        return (CodePurposeEnum(purpose).value, DeliveryChannelEnum(channel).value, identifier)

    @staticmethod
    def resolve_max_attempts(purpose: CodePurposeEnum, max_attempts: int | None) -> int:
        return max_attempts if max_attempts is not None else CODE_MAX_ATTEMPTS[CodePurposeEnum(purpose)]


class InMemoryCodeStore(AbstractCodeStore):
    """
    Process local store. A single lock guards the whole
    read, check, increment and delete sequence of verify so two threads
    can never both spend the same last attempt.
    """

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._entries: dict[CodeKey, PendingCode] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def store(
        self,
        identifier: str,
        purpose: CodePurposeEnum,
        channel: DeliveryChannelEnum,
        code: str,
        lifetime_minutes: float,
        max_attempts: int | None = None,
    ) -> PendingCode:
        now = self._clock()
        pending = PendingCode(
            identifier=identifier,
            purpose=purpose,
            channel=channel,
            code=code,
            created_at=now,
            expires_at=now + datetime.timedelta(minutes=lifetime_minutes),
            attempts=0,
            max_attempts=self.resolve_max_attempts(purpose, max_attempts),
        )
        with self._lock:
            self._entries[self.make_key(identifier, purpose, channel)] = pending
        return pending

    def verify(
        self,
        identifier: str,
        purpose: CodePurposeEnum,
        channel: DeliveryChannelEnum,
        code: str,
    ) -> CodeCheck:
        key = self.make_key(identifier, purpose, channel)
        now = self._clock()

        with self._lock:
            pending = self._entries.get(key)
            if pending is None:
                return CodeCheck(status=CodeCheckStatusEnum.NOT_FOUND)

            if now > pending.expires_at:
                del self._entries[key]
                return CodeCheck(status=CodeCheckStatusEnum.EXPIRED)

            if pending.attempts >= pending.max_attempts:
                del self._entries[key]
                return CodeCheck(status=CodeCheckStatusEnum.TOO_MANY_ATTEMPTS)

            if codes_match(pending.code, code):
                del self._entries[key]
                return CodeCheck(status=CodeCheckStatusEnum.OK)

            pending.attempts += 1
            if pending.attempts >= pending.max_attempts:
                # The guess that spends the last attempt locks the code out
                del self._entries[key]
                return CodeCheck(status=CodeCheckStatusEnum.TOO_MANY_ATTEMPTS, attempts_remaining=0)

            return CodeCheck(status=CodeCheckStatusEnum.MISMATCH, attempts_remaining=pending.attempts_remaining)

    def sweep_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, pending in self._entries.items() if pending.expires_at < now]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug(f'swept {len(expired)} expired verification codes')
        return len(expired)

    def get_status(
        self,
        identifier: str,
        purpose: CodePurposeEnum,
        channel: DeliveryChannelEnum,
    ) -> CodeStatus:
        now = self._clock()
        with self._lock:
            pending = self._entries.get(self.make_key(identifier, purpose, channel))
            if pending is None:
                return CodeStatus(exists=False)

            remaining = pending.expires_at - now
            return CodeStatus(
                exists=True,
                is_expired=now > pending.expires_at,
                time_remaining_ms=max(int(remaining.total_seconds() * 1000), 0),
                attempts=pending.attempts,
                max_attempts=pending.max_attempts,
                attempts_remaining=pending.attempts_remaining,
            )
