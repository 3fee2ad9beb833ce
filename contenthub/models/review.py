"""reviews table."""

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Text, desc, text
from sqlalchemy.orm import Mapped, mapped_column

from contenthub.core.database import Base, IntPKMixin, TimestampMixin


class Review(IntPKMixin, TimestampMixin, Base):
    __tablename__ = "reviews"

    # properties live outside this schema; the reference is not a foreign key
    property_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    dislikes: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="rating_range"),
        Index("idx_reviews_property", "property_id"),
        Index("idx_reviews_listing", desc("created_at"), desc("id")),
    )
