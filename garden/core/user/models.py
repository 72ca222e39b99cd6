import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from garden.common.model import BaseModel
from garden.core.user.constants import UserRoleEnum, UserStatusEnum
from garden.core.user.domains import UserCreate, UserRead
from garden.core.verification.constants import DeliveryChannelEnum


class User(BaseModel[UserRead, UserCreate]):
    name: Mapped[str] = mapped_column(String(length=100), nullable=False)
    # Always stored lowercased, see UserCreate
    email: Mapped[str] = mapped_column(String(length=320), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String(length=20), default=UserRoleEnum.USER.value)
    status: Mapped[str] = mapped_column(String(length=20), default=UserStatusEnum.ACTIVE.value)

    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    email_verified_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(length=20), nullable=True)
    phone_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    phone_verified_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    two_factor_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    two_factor_method: Mapped[str] = mapped_column(String(length=10), default=DeliveryChannelEnum.EMAIL.value)

    # Ordered membership records, {garden_id, role, status, joined_at}
    gardens: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    last_login_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __pk_abbrev__ = 'user'
    __read_domain__ = UserRead
    __create_domain__ = UserCreate
