from typing import Callable

import pytest
from fastapi.testclient import TestClient

from garden.common.model import BaseModel
from garden.core.user import UserRead, UserService
from garden.network.database.session import db as session_manager
from garden.network.database.session import engine
from garden.setup import configure_models


@pytest.fixture(scope='function', autouse=True)
def reset_database():
    """
    Every test starts from empty tables on the shared in-memory database
    """
    configure_models()
    BaseModel.metadata.drop_all(bind=engine)
    BaseModel.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope='function')
def client() -> TestClient:
    """
    Function scoped so each test gets a fresh code store from the app lifespan
    """
    from garden.network.http.server import server

    with TestClient(server) as c:
        yield c


@pytest.fixture(scope='function')
def make_user(user_factory) -> Callable[..., UserRead]:
    """
    Persist an account outside of any request
        user = make_user(email='alice@x.com', two_factor_enabled=True)
    """

    def _make_user(**overrides) -> UserRead:
        with session_manager(commit_on_success=True):
            return UserService.factory().create_user(user_factory.build(**overrides))

    return _make_user


@pytest.fixture(scope='function')
def verified_user(make_user) -> UserRead:
    return make_user(name='Alice', email='alice@x.com', email_verified=True)
