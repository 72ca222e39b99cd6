import threading

import pytest

from garden.core.verification.constants import CodeCheckStatusEnum, CodePurposeEnum, DeliveryChannelEnum
from garden.core.verification.store import InMemoryCodeStore

EMAIL = 'alice@x.com'
VERIFY = CodePurposeEnum.EMAIL_VERIFICATION
TWO_FACTOR = CodePurposeEnum.TWO_FACTOR
BY_EMAIL = DeliveryChannelEnum.EMAIL
BY_SMS = DeliveryChannelEnum.SMS


@pytest.fixture
def store(clock) -> InMemoryCodeStore:
    return InMemoryCodeStore(clock=clock)


def test_correct_code_verifies_exactly_once(store):
    store.store(EMAIL, VERIFY, BY_EMAIL, '123456', lifetime_minutes=10)

    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '123456').status == CodeCheckStatusEnum.OK
    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '123456').status == CodeCheckStatusEnum.NOT_FOUND


def test_unknown_key_is_not_found(store):
    check = store.verify(EMAIL, VERIFY, BY_EMAIL, '123456')
    assert check.status == CodeCheckStatusEnum.NOT_FOUND
    assert check.attempts_remaining is None


def test_fifth_wrong_guess_locks_out_verification_code(store):
    """
    Verification codes allow 5 attempts. Guesses 1-4 report what is left,
    the 5th wrong guess deletes the code and reports TOO_MANY_ATTEMPTS,
    after which the code no longer exists.
    """
    store.store(EMAIL, VERIFY, BY_EMAIL, '123456', lifetime_minutes=10)

    remaining = []
    for _ in range(4):
        check = store.verify(EMAIL, VERIFY, BY_EMAIL, '999999')
        assert check.status == CodeCheckStatusEnum.MISMATCH
        remaining.append(check.attempts_remaining)
    assert remaining == [4, 3, 2, 1]

    fifth = store.verify(EMAIL, VERIFY, BY_EMAIL, '999999')
    assert fifth.status == CodeCheckStatusEnum.TOO_MANY_ATTEMPTS
    assert fifth.attempts_remaining == 0

    # Even the right code is useless now
    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '123456').status == CodeCheckStatusEnum.NOT_FOUND


def test_two_factor_codes_allow_three_attempts(store):
    store.store(EMAIL, TWO_FACTOR, BY_EMAIL, '123456', lifetime_minutes=5)

    assert store.verify(EMAIL, TWO_FACTOR, BY_EMAIL, '000000').attempts_remaining == 2
    assert store.verify(EMAIL, TWO_FACTOR, BY_EMAIL, '000000').attempts_remaining == 1
    assert store.verify(EMAIL, TWO_FACTOR, BY_EMAIL, '000000').status == CodeCheckStatusEnum.TOO_MANY_ATTEMPTS


def test_explicit_max_attempts_overrides_purpose_default(store):
    pending = store.store(EMAIL, VERIFY, BY_EMAIL, '123456', lifetime_minutes=10, max_attempts=1)
    assert pending.max_attempts == 1

    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '000000').status == CodeCheckStatusEnum.TOO_MANY_ATTEMPTS


def test_correct_code_after_some_misses_still_verifies(store):
    store.store(EMAIL, VERIFY, BY_EMAIL, '123456', lifetime_minutes=10)
    store.verify(EMAIL, VERIFY, BY_EMAIL, '000000')
    store.verify(EMAIL, VERIFY, BY_EMAIL, '000000')

    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '123456').status == CodeCheckStatusEnum.OK


def test_expired_code_is_rejected_and_removed(store, clock):
    store.store(EMAIL, VERIFY, BY_EMAIL, '123456', lifetime_minutes=10)
    clock.advance(minutes=10, seconds=1)

    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '123456').status == CodeCheckStatusEnum.EXPIRED
    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '123456').status == CodeCheckStatusEnum.NOT_FOUND


def test_code_is_valid_up_to_its_expiry_instant(store, clock):
    store.store(EMAIL, VERIFY, BY_EMAIL, '123456', lifetime_minutes=10)
    clock.advance(minutes=10)

    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '123456').status == CodeCheckStatusEnum.OK


def test_expiry_wins_over_remaining_attempts(store, clock):
    store.store(EMAIL, VERIFY, BY_EMAIL, '123456', lifetime_minutes=10)
    store.verify(EMAIL, VERIFY, BY_EMAIL, '000000')
    clock.advance(minutes=11)

    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '000000').status == CodeCheckStatusEnum.EXPIRED


def test_reissue_overwrites_code_and_resets_attempts(store):
    store.store(EMAIL, VERIFY, BY_EMAIL, '111111', lifetime_minutes=10)
    for _ in range(3):
        store.verify(EMAIL, VERIFY, BY_EMAIL, '000000')

    store.store(EMAIL, VERIFY, BY_EMAIL, '222222', lifetime_minutes=10)

    status = store.get_status(EMAIL, VERIFY, BY_EMAIL)
    assert status.attempts == 0
    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '111111').attempts_remaining == 4
    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '222222').status == CodeCheckStatusEnum.OK


def test_codes_are_keyed_by_purpose_channel_and_identifier(store):
    store.store(EMAIL, VERIFY, BY_EMAIL, '111111', lifetime_minutes=10)
    store.store(EMAIL, TWO_FACTOR, BY_EMAIL, '222222', lifetime_minutes=5)
    store.store('+15551234567', VERIFY, BY_SMS, '333333', lifetime_minutes=10)

    assert store.verify(EMAIL, TWO_FACTOR, BY_EMAIL, '111111').status == CodeCheckStatusEnum.MISMATCH
    assert store.verify(EMAIL, VERIFY, BY_SMS, '111111').status == CodeCheckStatusEnum.NOT_FOUND
    assert store.verify('bob@x.com', VERIFY, BY_EMAIL, '111111').status == CodeCheckStatusEnum.NOT_FOUND
    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '111111').status == CodeCheckStatusEnum.OK
    assert store.verify('+15551234567', VERIFY, BY_SMS, '333333').status == CodeCheckStatusEnum.OK


def test_submitted_code_whitespace_is_ignored(store):
    store.store(EMAIL, VERIFY, BY_EMAIL, '123456', lifetime_minutes=10)
    assert store.verify(EMAIL, VERIFY, BY_EMAIL, ' 123456 ').status == CodeCheckStatusEnum.OK


def test_sweep_removes_only_expired_entries(store, clock):
    store.store('old@x.com', VERIFY, BY_EMAIL, '111111', lifetime_minutes=5)
    store.store(EMAIL, VERIFY, BY_EMAIL, '222222', lifetime_minutes=10)
    clock.advance(minutes=6)

    assert store.sweep_expired() == 1
    assert len(store) == 1
    assert store.get_status('old@x.com', VERIFY, BY_EMAIL).exists is False
    assert store.verify(EMAIL, VERIFY, BY_EMAIL, '222222').status == CodeCheckStatusEnum.OK


def test_sweep_with_nothing_expired_is_a_no_op(store):
    store.store(EMAIL, VERIFY, BY_EMAIL, '222222', lifetime_minutes=10)
    assert store.sweep_expired() == 0
    assert len(store) == 1


def test_get_status_reports_remaining_time_and_attempts(store, clock):
    assert store.get_status(EMAIL, VERIFY, BY_EMAIL).exists is False

    store.store(EMAIL, VERIFY, BY_EMAIL, '123456', lifetime_minutes=10)
    store.verify(EMAIL, VERIFY, BY_EMAIL, '000000')
    clock.advance(minutes=4)

    status = store.get_status(EMAIL, VERIFY, BY_EMAIL)
    assert status.exists is True
    assert status.is_expired is False
    assert status.time_remaining_ms == 6 * 60 * 1000
    assert status.attempts == 1
    assert status.max_attempts == 5
    assert status.attempts_remaining == 4


def test_concurrent_wrong_guesses_never_exceed_the_ceiling(store):
    store.store(EMAIL, VERIFY, BY_EMAIL, '123456', lifetime_minutes=10)
    results = []
    results_lock = threading.Lock()
    start = threading.Barrier(20)

    def guess():
        start.wait()
        check = store.verify(EMAIL, VERIFY, BY_EMAIL, '000000')
        with results_lock:
            results.append(check.status)

    threads = [threading.Thread(target=guess) for _ in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(CodeCheckStatusEnum.MISMATCH) == 4
    assert results.count(CodeCheckStatusEnum.TOO_MANY_ATTEMPTS) == 1
    assert results.count(CodeCheckStatusEnum.NOT_FOUND) == 15
