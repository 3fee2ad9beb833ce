"""users table."""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from contenthub.core.database import Base, IntPKMixin, TimestampMixin

USER_ROLES = ("user", "admin")
USER_STATUSES = ("active", "inactive")


def _one_of(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN (" + ", ".join(f"'{v}'" for v in values) + ")"


class User(IntPKMixin, TimestampMixin, Base):
    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=text("'active'")
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, server_default=text("'user'"))
    profile_image: Mapped[Optional[str]] = mapped_column(Text)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint(_one_of("role", USER_ROLES), name="role_valid"),
        CheckConstraint(_one_of("status", USER_STATUSES), name="status_valid"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
