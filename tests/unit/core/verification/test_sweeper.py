from unittest.mock import MagicMock

from garden.core.verification.constants import CodePurposeEnum, DeliveryChannelEnum
from garden.core.verification.store import AbstractCodeStore, InMemoryCodeStore
from garden.core.verification.sweeper import CodeSweeper, build_code_store


def test_run_sweep_removes_expired_codes(clock):
    code_store = InMemoryCodeStore(clock=clock)
    code_store.store('a@x.com', CodePurposeEnum.EMAIL_VERIFICATION, DeliveryChannelEnum.EMAIL, '111111', 10)
    code_store.store('b@x.com', CodePurposeEnum.TWO_FACTOR, DeliveryChannelEnum.EMAIL, '222222', 5)
    clock.advance(minutes=6)

    sweeper = CodeSweeper(code_store, scheduler=MagicMock())

    assert sweeper.run_sweep() == 1
    assert len(code_store) == 1


def test_run_sweep_survives_store_errors():
    code_store = MagicMock(spec=AbstractCodeStore)
    code_store.sweep_expired.side_effect = ConnectionError('redis unavailable')

    sweeper = CodeSweeper(code_store, scheduler=MagicMock())

    assert sweeper.run_sweep() == 0


def test_start_schedules_interval_job():
    scheduler = MagicMock()
    sweeper = CodeSweeper(InMemoryCodeStore(), interval_seconds=60, scheduler=scheduler)

    sweeper.start()

    scheduler.add_job.assert_called_once_with(
        sweeper.run_sweep,
        'interval',
        seconds=60,
        id=CodeSweeper.JOB_ID,
        name='Expired Code Sweep',
        replace_existing=True,
    )
    scheduler.start.assert_called_once_with()


def test_shutdown_only_stops_a_running_scheduler():
    scheduler = MagicMock()
    scheduler.running = False
    sweeper = CodeSweeper(InMemoryCodeStore(), scheduler=scheduler)

    sweeper.shutdown()
    scheduler.shutdown.assert_not_called()

    scheduler.running = True
    sweeper.shutdown()
    scheduler.shutdown.assert_called_once_with(wait=False)


def test_default_code_store_is_in_memory():
    assert isinstance(build_code_store(), InMemoryCodeStore)


def test_redis_backend(monkeypatch):
    monkeypatch.setattr('garden.settings.CODE_STORE_BACKEND', 'redis')

    code_store = build_code_store()

    assert type(code_store).__name__ == 'RedisCodeStore'
    assert code_store.key_prefix == 'garden:code'
