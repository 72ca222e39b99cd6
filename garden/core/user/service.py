import datetime

from garden.common.exceptions import InternalException
from garden.common.nanoid import NanoIdType
from garden.core.user.domains import UserCreate, UserRead, normalize_email
from garden.core.user.models import User
from garden.core.verification.constants import DeliveryChannelEnum
from garden.network.database.repository.exceptions import RepositoryObjectNotFound


class UserNotFound(InternalException):
    status_code = 404
    default_detail = 'User not found'
    default_code = 'USER_NOT_FOUND'


class UserService:
    @classmethod
    def factory(cls) -> 'UserService':
        return cls()

    def get_user_for_id(self, user_id: NanoIdType) -> UserRead:
        try:
            return User.get(id=user_id)
        except RepositoryObjectNotFound:
            raise UserNotFound(message=f'User not found with id: {user_id}')

    def get_user_for_email(self, email: str) -> UserRead:
        user = self.get_user_for_email_or_none(email)
        if user is None:
            raise UserNotFound(message=f'User not found with email: {email}')
        return user

    def get_user_for_email_or_none(self, email: str) -> UserRead | None:
        return User.get_or_none(User.email == normalize_email(email))

    def email_exists(self, email: str) -> bool:
        return User.count(User.email == normalize_email(email)) > 0

    def create_user(self, user: UserCreate) -> UserRead:
        return User.create(user)

    def mark_email_verified(self, user_id: NanoIdType) -> bool:
        """
        Compare-and-set on the flag so concurrent verifications agree on a
        single winner. Returns False when the account was already verified.
        """
        updated = User.update_where(
            User.id == user_id,
            User.email_verified == False,  # noqa: E712
            email_verified=True,
            email_verified_at=datetime.datetime.now(tz=datetime.timezone.utc),
        )
        return updated == 1

    def mark_phone_verified(self, user_id: NanoIdType) -> bool:
        updated = User.update_where(
            User.id == user_id,
            User.phone_verified == False,  # noqa: E712
            phone_verified=True,
            phone_verified_at=datetime.datetime.now(tz=datetime.timezone.utc),
        )
        return updated == 1

    def update_two_factor(self, user_id: NanoIdType, enabled: bool, method: DeliveryChannelEnum) -> UserRead:
        return User.update(id=user_id, two_factor_enabled=enabled, two_factor_method=DeliveryChannelEnum(method).value)

    def record_login(self, user_id: NanoIdType) -> UserRead:
        return User.update(id=user_id, last_login_at=datetime.datetime.now(tz=datetime.timezone.utc))
