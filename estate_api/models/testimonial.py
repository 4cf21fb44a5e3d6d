"""Site testimonial, one per user."""

from sqlalchemy import Integer, Text, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estate_api.database import Base
from estate_api.utils.dates import isoformat
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from estate_api.models.user import User


class Testimonial(Base):
    """
    Testimonial written by a user about the platform.
    ``user_id`` is unique: a user may hold at most one testimonial.
    """

    __tablename__ = "testimonials"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_testimonials_rating"),
    )

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    user: Mapped["User"] = relationship("User", lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "content": self.content,
            "rating": self.rating,
            "approved": self.approved,
            "created_at": isoformat(self.created_at),
            "user": self.user.to_summary() if self.user else None,
        }
