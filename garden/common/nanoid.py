import string
from math import ceil, log
from os import urandom
from typing import TypeAlias

# Primary key type, e.g. user-XSqS5h9vFTSgP
NanoIdType: TypeAlias = str

_DEFAULT_CHAR_POOL = string.digits + string.ascii_letters


def generate_custom_nanoid(size: int = 8, char_pool: str | None = None) -> NanoIdType:
    """
    Generate a short random url safe id
    Entropy here -> https://zelark.github.io/nano-id-cc/
    """
    char_pool = char_pool or _DEFAULT_CHAR_POOL
    char_pool_len = len(char_pool)

    # Smallest bit mask covering the pool so every byte maps uniformly or is discarded
    mask = 1
    if char_pool_len > 1:
        mask = (2 << int(log(char_pool_len - 1) / log(2))) - 1
    step = int(ceil(1.6 * mask * size / char_pool_len))

    nano_id = ''
    while True:
        for random_byte in bytearray(urandom(step)):
            index = random_byte & mask
            if index < char_pool_len:
                nano_id += char_pool[index]
                if len(nano_id) == size:
                    return nano_id


class NanoId:
    """
    ID used as primary key
    """

    _CHAR_SIZE = 13

    @classmethod
    def gen(cls, abbrev: str | None = None) -> NanoIdType:
        nano_id = generate_custom_nanoid(size=cls._CHAR_SIZE)
        if abbrev:
            nano_id = f'{abbrev}-{nano_id}'

        return nano_id
