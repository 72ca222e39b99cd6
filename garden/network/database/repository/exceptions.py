from garden.common.exceptions import InternalException


class RepositoryObjectNotFound(InternalException):
    """
    Wraps sqlalchemy exception when an object does not exist
    """

    default_code = 'NOT_FOUND'


class MultipleRepositoryObjectsFound(InternalException):
    """
    Wraps sqlalchemy exception when multiple results are returned when
    only one is expected
    """


class PreventingModelTruncation(InternalException):
    """
    Raised where an unguarded statement would touch every row
    """
