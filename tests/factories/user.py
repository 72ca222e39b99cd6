from polyfactory import Use
from polyfactory.factories.pydantic_factory import ModelFactory
from polyfactory.pytest_plugin import register_fixture

from garden.core.authentication import AuthenticationService
from garden.core.user import UserCreate, UserRoleEnum, UserStatusEnum
from garden.core.verification.constants import DeliveryChannelEnum
from tests.factories.base import Faker

DEFAULT_PASSWORD = 'secret1'


@register_fixture(scope='session', autouse=True, name='user_factory')
class UserFactory(ModelFactory[UserCreate]):
    __model__ = UserCreate

    name = Use(Faker.name)
    email = Use(Faker.email)
    hashed_password = Use(AuthenticationService.hash_password, DEFAULT_PASSWORD)
    phone = None
    role = UserRoleEnum.USER
    status = UserStatusEnum.ACTIVE
    email_verified = True
    email_verified_at = None
    two_factor_enabled = False
    two_factor_method = DeliveryChannelEnum.EMAIL
    gardens = Use(list)
