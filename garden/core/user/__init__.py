from garden.core.user.constants import GardenRoleEnum, MembershipStatusEnum, UserRoleEnum, UserStatusEnum
from garden.core.user.domains import GardenMembership, UserCreate, UserRead, UserSummary
from garden.core.user.models import User
from garden.core.user.service import UserNotFound, UserService

__all__ = [
    'GardenMembership',
    'GardenRoleEnum',
    'MembershipStatusEnum',
    'User',
    'UserCreate',
    'UserNotFound',
    'UserRead',
    'UserRoleEnum',
    'UserService',
    'UserStatusEnum',
    'UserSummary',
]
