from garden.common.enum import BaseEnum


class UserRoleEnum(BaseEnum):
    USER = 'user'
    ADMIN = 'admin'


class UserStatusEnum(BaseEnum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    SUSPENDED = 'suspended'


class GardenRoleEnum(BaseEnum):
    OWNER = 'owner'
    COORDINATOR = 'coordinator'
    MEMBER = 'member'


class MembershipStatusEnum(BaseEnum):
    ACTIVE = 'active'
    PENDING = 'pending'
    REJECTED = 'rejected'
