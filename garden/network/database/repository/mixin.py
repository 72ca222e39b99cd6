from typing import TYPE_CHECKING, Any, Generic, Type, TypeVar, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, MultipleResultsFound, NoResultFound
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql.elements import BinaryExpression, ColumnElement

from garden.common.domain import BaseDomain
from garden.network.database.repository.exceptions import (
    MultipleRepositoryObjectsFound,
    PreventingModelTruncation,
    RepositoryObjectNotFound,
)
from garden.network.database.session import db

if TYPE_CHECKING:
    from garden.common.model import BaseModel


ReadDomainType = TypeVar('ReadDomainType', bound=BaseDomain)
CreateDomainType = TypeVar('CreateDomainType', bound=BaseDomain)


class RepositoryMixin(Generic[ReadDomainType, CreateDomainType]):
    """
    Database access layer. All interaction with the database should be routed
    through this layer. all public interfaces accept and return pydantic domains
    so callers never hold live ORM instances.
    """

    __create_domain__: Type[CreateDomainType] = NotImplemented
    __read_domain__: Type[ReadDomainType] = NotImplemented

    @classmethod
    def _get_session(cls) -> Session:
        return db.session

    @classmethod
    def get_query(cls, *clauses: Any, **specification: Any) -> 'Query[BaseModel]':  # type: ignore[type-arg]
        query = cls._get_session().query(cls)
        for clause in clauses:
            query = query.where(clause)
        for key, value in specification.items():
            query = query.where(getattr(cls, key) == value)
        return query

    @classmethod
    def get(cls, *clauses: Union[BinaryExpression[Any], ColumnElement[bool]], **specification: Any) -> ReadDomainType:
        instance = cls._get(*clauses, **specification)

        return cls._to_domain(instance)

    @classmethod
    def get_or_none(cls, *clauses: Any, **specification: Any) -> ReadDomainType | None:
        try:
            instance = cls._get(*clauses, **specification)
        except RepositoryObjectNotFound:
            return None

        return cls._to_domain(instance)

    @classmethod
    def _get(cls, *clauses: Any, **specification: Any) -> 'BaseModel[Any, Any]':
        try:
            return cls.get_query(*clauses, **specification).one()
        except MultipleResultsFound:
            raise MultipleRepositoryObjectsFound(f'Multiple results found for {cls.__name__}: {specification}!')
        except NoResultFound:
            raise RepositoryObjectNotFound(f'{cls.__name__}: {specification} not found!')

    @classmethod
    def count(cls, *clauses: Any, **specification: Any) -> int:
        return int(cls.get_query(*clauses, **specification).count())

    @classmethod
    def create(cls, domain_obj: CreateDomainType) -> ReadDomainType:
        model_instance = cls._create(**domain_obj.to_dict())
        return cls._to_domain(model_instance)

    @classmethod
    def update(cls, id: str, **updates: Any) -> ReadDomainType:
        model_instance = cls.get_query(id=id).one()
        for key, value in updates.items():
            if not hasattr(model_instance, key):
                raise ValueError(f"The key '{key}' is not a valid attribute for this model.")
            setattr(model_instance, key, value)

        try:
            cls._get_session().flush([model_instance])
        except IntegrityError:
            cls._get_session().rollback()
            raise

        return cls._to_domain(model_instance)

    @classmethod
    def update_where(cls, *clauses: Any, **updates: Any) -> int:
        """
        Single UPDATE statement guarded by clauses. Returns affected rows so
        callers can use it as a compare-and-set.
        """
        if not clauses:
            raise PreventingModelTruncation(f'Must pass clauses to avoid updating every {cls.__name__}')

        statement = update(cls).where(*clauses).values(**updates).execution_options(synchronize_session='fetch')
        result = cls._get_session().execute(statement)
        return int(result.rowcount)

    @classmethod
    def _create(cls, **attributes: Any) -> 'BaseModel[Any, Any]':
        model_instance = cls(**attributes)
        cls._get_session().add(model_instance)
        try:
            cls._get_session().flush([model_instance])
        except IntegrityError:
            cls._get_session().rollback()
            raise

        return model_instance  # type: ignore[return-value]

    @classmethod
    def _to_domain(cls, model_instance: 'BaseModel[Any, Any]') -> ReadDomainType:
        return cls.__read_domain__.model_validate(model_instance)  # type: ignore[no-any-return]
