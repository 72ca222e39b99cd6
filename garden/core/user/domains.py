import datetime
from typing import Any

from pydantic import Field, field_serializer, field_validator

from garden.common.domain import BaseDomain
from garden.common.nanoid import NanoIdType
from garden.core.user.constants import GardenRoleEnum, MembershipStatusEnum, UserRoleEnum, UserStatusEnum
from garden.core.verification.constants import DeliveryChannelEnum


def normalize_email(email: str) -> str:
    return email.strip().lower()


class GardenMembership(BaseDomain):
    garden_id: str
    role: GardenRoleEnum = GardenRoleEnum.MEMBER
    status: MembershipStatusEnum = MembershipStatusEnum.PENDING
    joined_at: datetime.datetime | None = None


class UserSummary(BaseDomain):
    """
    Public view of an account, safe to return to clients
    """

    id: NanoIdType
    name: str
    email: str
    phone: str | None = None
    role: UserRoleEnum
    email_verified: bool
    phone_verified: bool
    two_factor_enabled: bool
    two_factor_method: DeliveryChannelEnum
    gardens: list[GardenMembership] = Field(default_factory=list)


class UserRead(UserSummary):
    hashed_password: str
    status: UserStatusEnum
    email_verified_at: datetime.datetime | None = None
    phone_verified_at: datetime.datetime | None = None
    last_login_at: datetime.datetime | None = None
    created_at: datetime.datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatusEnum.ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role == UserRoleEnum.ADMIN

    def to_summary(self) -> UserSummary:
        return UserSummary(**self.model_dump(include=set(UserSummary.model_fields)))

    def get_active_membership(self, garden_id: str) -> GardenMembership | None:
        for membership in self.gardens:
            if membership.garden_id == garden_id and membership.status == MembershipStatusEnum.ACTIVE:
                return membership
        return None


class UserCreate(BaseDomain):
    name: str
    email: str
    hashed_password: str
    phone: str | None = None
    role: UserRoleEnum = UserRoleEnum.USER
    status: UserStatusEnum = UserStatusEnum.ACTIVE
    email_verified: bool = False
    email_verified_at: datetime.datetime | None = None
    two_factor_enabled: bool = False
    two_factor_method: DeliveryChannelEnum = DeliveryChannelEnum.EMAIL
    gardens: list[GardenMembership] = Field(default_factory=list)

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, email: str) -> str:
        return normalize_email(email)

    @field_validator('name')
    @classmethod
    def strip_name(cls, name: str) -> str:
        return name.strip()

    @field_serializer('gardens')
    def serialize_gardens(self, gardens: list[GardenMembership]) -> list[dict[str, Any]]:
        # Stored in a JSON column so datetimes must already be strings
        return [membership.model_dump(mode='json') for membership in gardens]
