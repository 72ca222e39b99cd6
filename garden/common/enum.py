import enum


class BaseEnum(str, enum.Enum):
    """
    String valued enum so members compare equal to, and serialise as, their value
    """

    def __str__(self) -> str:
        return str(self.value)
