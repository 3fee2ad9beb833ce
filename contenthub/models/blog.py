"""blogs table."""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, desc, text
from sqlalchemy.orm import Mapped, mapped_column

from contenthub.core.database import Base, IntPKMixin, TimestampMixin


class Blog(IntPKMixin, TimestampMixin, Base):
    __tablename__ = "blogs"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    is_featured: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))

    __table_args__ = (
        Index("idx_blogs_author", "author_id"),
        Index("idx_blogs_listing", desc("created_at"), desc("id")),
    )
