"""Request log row written by the visitor tracking middleware."""

from sqlalchemy import Integer, String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estate_api.database import Base
from estate_api.utils.dates import isoformat
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estate_api.models.user import User


class Visitor(Base):
    """One row per tracked request. The user link is cleared if the user is deleted."""

    __tablename__ = "visitors"

    ip: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    path: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    method: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    referrer: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    user: Mapped[Optional["User"]] = relationship("User", lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ip": self.ip,
            "path": self.path,
            "method": self.method,
            "user_agent": self.user_agent,
            "referrer": self.referrer,
            "user_id": self.user_id,
            "created_at": isoformat(self.created_at),
            "user": (
                {"id": self.user.id, "name": self.user.name, "email": self.user.email, "role": self.user.role.value}
                if self.user else None
            ),
        }
