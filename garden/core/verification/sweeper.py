"""
Background maintenance for the code store.

Jobs:
- Expired code sweep every CODE_SWEEP_INTERVAL_SECONDS (default 5 minutes)
"""

from apscheduler.schedulers.background import BackgroundScheduler
from loguru import logger

from garden import settings
from garden.common import context
from garden.core.verification.store import AbstractCodeStore, InMemoryCodeStore


def build_code_store() -> AbstractCodeStore:
    if settings.CODE_STORE_BACKEND == 'redis':
        from garden.core.verification.redis_store import RedisCodeStore
        from garden.network.cache.cache import create_cache

        logger.info('Using redis code store')
        return RedisCodeStore(client=create_cache())

    return InMemoryCodeStore()


class CodeSweeper:
    JOB_ID = 'code_sweep'

    def __init__(
        self,
        code_store: AbstractCodeStore,
        interval_seconds: int = settings.CODE_SWEEP_INTERVAL_SECONDS,
        scheduler: BackgroundScheduler | None = None,
    ):
        self.code_store = code_store
        self.interval_seconds = interval_seconds
        self.scheduler = scheduler or BackgroundScheduler(daemon=True)

    def run_sweep(self) -> int:
        """A failed sweep is logged and the next interval tries again"""
        token = context.initialize(user_type=context.AppContextUserType.SYSTEM)
        try:
            return self.code_store.sweep_expired()
        except Exception:
            logger.exception('Expired code sweep failed')
            return 0
        finally:
            context.reset(token)

    def start(self) -> None:
        self.scheduler.add_job(
            self.run_sweep,
            'interval',
            seconds=self.interval_seconds,
            id=self.JOB_ID,
            name='Expired Code Sweep',
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(f'Code sweeper started: every {self.interval_seconds}s')

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info('Code sweeper stopped')
