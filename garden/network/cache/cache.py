from urllib.parse import urlparse

from walrus import Walrus

from garden.settings import REDIS_URL


def create_cache(redis_url: str = REDIS_URL) -> Walrus:
    """
    No connection is made until the first command is issued
    """
    parsed = urlparse(redis_url)
    return Walrus(
        host=parsed.hostname or 'localhost',
        port=parsed.port or 6379,
        db=int(parsed.path.lstrip('/') or 0),
        decode_responses=True,
        password=parsed.password,
    )
