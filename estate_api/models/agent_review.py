"""Buyer review of an agent."""

from sqlalchemy import Integer, Text, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estate_api.database import Base
from estate_api.utils.dates import isoformat
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from estate_api.models.user import User


class AgentReview(Base):
    """Rating (1-5) and comment left by a buyer. One review per buyer per agent."""

    __tablename__ = "agent_reviews"
    __table_args__ = (
        UniqueConstraint("agent_id", "reviewer_id", name="uq_agent_reviews_agent_reviewer"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_agent_reviews_rating"),
    )

    agent_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reviewer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    reviewer: Mapped["User"] = relationship("User", foreign_keys=[reviewer_id], lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "reviewer_id": self.reviewer_id,
            "rating": self.rating,
            "content": self.content,
            "created_at": isoformat(self.created_at),
            "reviewer": self.reviewer.to_summary() if self.reviewer else None,
        }
