import datetime

from walrus import Walrus

from garden import settings
from garden.core.verification.constants import CodeCheckStatusEnum, CodePurposeEnum, DeliveryChannelEnum
from garden.core.verification.domains import CodeCheck, CodeStatus, PendingCode
from garden.core.verification.store import AbstractCodeStore, Clock, utc_now

# Expired entries linger this long so a late guess reports CODE_EXPIRED rather than CODE_NOT_FOUND
EXPIRED_RETENTION = datetime.timedelta(minutes=10)

# KEYS[1] entry hash, ARGV[1] submitted code, ARGV[2] now in epoch ms
VERIFY_SCRIPT = """
local entry = redis.call('HMGET', KEYS[1], 'code', 'expires_at', 'attempts', 'max_attempts')
if not entry[1] then
    return {'NOT_FOUND', -1}
end
if tonumber(ARGV[2]) > tonumber(entry[2]) then
    redis.call('DEL', KEYS[1])
    return {'EXPIRED', -1}
end
local max_attempts = tonumber(entry[4])
if tonumber(entry[3]) >= max_attempts then
    redis.call('DEL', KEYS[1])
    return {'TOO_MANY_ATTEMPTS', -1}
end
if entry[1] == ARGV[1] then
    redis.call('DEL', KEYS[1])
    return {'OK', -1}
end
local attempts = redis.call('HINCRBY', KEYS[1], 'attempts', 1)
if attempts >= max_attempts then
    redis.call('DEL', KEYS[1])
    return {'TOO_MANY_ATTEMPTS', 0}
end
return {'MISMATCH', max_attempts - attempts}
"""


def to_epoch_ms(value: datetime.datetime) -> int:
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: str | int) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(int(value) / 1000, tz=datetime.timezone.utc)


class RedisCodeStore(AbstractCodeStore):
    """
    Shares pending codes between app instances. Each entry is a hash;
    verify runs as one Lua script so the check and the attempt increment
    happen atomically on the server.
    """

    def __init__(self, client: Walrus, key_prefix: str = settings.CODE_STORE_KEY_PREFIX, clock: Clock = utc_now):
        self.client = client
        self.key_prefix = key_prefix
        self._clock = clock
        self._verify_script = client.register_script(VERIFY_SCRIPT)

    def _redis_key(self, identifier: str, purpose: CodePurposeEnum, channel: DeliveryChannelEnum) -> str:
        return ':'.join((self.key_prefix, *self.make_key(identifier, purpose, channel)))

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

        key = self._redis_key(identifier, purpose, channel)
        pipe = self.client.pipeline(transaction=True)
        pipe.delete(key)
        pipe.hset(
            key,
            mapping={
                'code': pending.code,
                'created_at': to_epoch_ms(pending.created_at),
                'expires_at': to_epoch_ms(pending.expires_at),
                'attempts': 0,
                'max_attempts': pending.max_attempts,
            },
        )
        pipe.pexpireat(key, to_epoch_ms(pending.expires_at + EXPIRED_RETENTION))
        pipe.execute()
        return pending

    def verify(
        self,
        identifier: str,
        purpose: CodePurposeEnum,
        channel: DeliveryChannelEnum,
        code: str,
    ) -> CodeCheck:
        status, remaining = self._verify_script(
            keys=[self._redis_key(identifier, purpose, channel)],
            args=[code.strip(), to_epoch_ms(self._clock())],
        )
        remaining = int(remaining)
        return CodeCheck(
            status=CodeCheckStatusEnum(status),
            attempts_remaining=remaining if remaining >= 0 else None,
        )

    def sweep_expired(self) -> int:
        # Redis evicts entries through their key expiry
        return 0

    def get_status(
        self,
        identifier: str,
        purpose: CodePurposeEnum,
        channel: DeliveryChannelEnum,
    ) -> CodeStatus:
        entry = self.client.hgetall(self._redis_key(identifier, purpose, channel))
        if not entry:
            return CodeStatus(exists=False)

        now = self._clock()
        expires_at = from_epoch_ms(entry['expires_at'])
        attempts = int(entry['attempts'])
        max_attempts = int(entry['max_attempts'])
        return CodeStatus(
            exists=True,
            is_expired=now > expires_at,
            time_remaining_ms=max(to_epoch_ms(expires_at) - to_epoch_ms(now), 0),
            attempts=attempts,
            max_attempts=max_attempts,
            attempts_remaining=max(max_attempts - attempts, 0),
        )
