"""auth_credentials table — one row per user, holds the password hash."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from contenthub.core.database import Base, IntPKMixin


class Credential(IntPKMixin, Base):
    __tablename__ = "auth_credentials"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    reset_token: Mapped[Optional[str]] = mapped_column(String(64), unique=True)
    reset_token_expires: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
