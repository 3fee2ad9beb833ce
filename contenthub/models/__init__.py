"""SQLAlchemy ORM models — one file per table."""

from contenthub.models.blog import Blog
from contenthub.models.credential import Credential
from contenthub.models.event import EVENT_STATUSES, Event
from contenthub.models.review import Review
from contenthub.models.user import User

__all__ = [
    "User",
    "Credential",
    "Event",
    "EVENT_STATUSES",
    "Blog",
    "Review",
]
