from fastapi import Request, params, status

from garden.common.exceptions import APIException
from garden.core.authentication.guards import AuthenticatedUserGuard
from garden.core.user import GardenRoleEnum, UserRead


class _RouterGuard(params.Security):
    def __call__(self, *args, **kwargs):
        return self


def _authorize_admin(user: UserRead = AuthenticatedUserGuard()) -> UserRead:
    if not user.is_admin:
        raise APIException(
            code=status.HTTP_403_FORBIDDEN,
            message='Admin access required',
            error_code='ADMIN_REQUIRED',
        )
    return user


AdminGuard = _RouterGuard(dependency=_authorize_admin)

# in router:
#     user: UserRead = require_admin()
require_admin = AdminGuard


def require_garden_role(*roles: GardenRoleEnum) -> params.Security:
    """
    Requires an active membership in the garden named by the `garden_id`
    path (or query) parameter, holding one of `roles` when any are given.
    Admins pass every garden check.
        user: UserRead = require_garden_role(GardenRoleEnum.OWNER, GardenRoleEnum.COORDINATOR)
    """
    allowed_roles = {GardenRoleEnum(role).value for role in roles}

    def _authorize_garden_member(request: Request, user: UserRead = AuthenticatedUserGuard()) -> UserRead:
        if user.is_admin:
            return user

        garden_id = request.path_params.get('garden_id') or request.query_params.get('garden_id')
        if not garden_id:
            raise APIException(
                code=status.HTTP_400_BAD_REQUEST,
                message='Garden ID required',
                error_code='GARDEN_ID_REQUIRED',
            )

        membership = user.get_active_membership(garden_id)
        if membership is None:
            raise APIException(
                code=status.HTTP_403_FORBIDDEN,
                message='You are not a member of this garden',
                error_code='NOT_A_MEMBER',
            )

        if allowed_roles and membership.role not in allowed_roles:
            raise APIException(
                code=status.HTTP_403_FORBIDDEN,
                message=f'Requires one of the following roles: {", ".join(sorted(allowed_roles))}',
                error_code='INSUFFICIENT_ROLE',
            )
        return user

    return _RouterGuard(dependency=_authorize_garden_member)
