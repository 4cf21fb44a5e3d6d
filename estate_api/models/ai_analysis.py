"""Stored AI appraisal of a listing."""

from sqlalchemy import Float, Text, Integer, ForeignKey, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column
from estate_api.database import Base
from estate_api.utils.dates import isoformat
from datetime import datetime


class AiAnalysis(Base):
    """One analysis per property: a score and free-text insights."""

    __tablename__ = "ai_analysis"

    property_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    ai_score: Mapped[float] = mapped_column(Float, nullable=False)
    ai_insights: Mapped[str] = mapped_column(Text, nullable=False)
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def to_dict(self) -> dict:
        return {
            "ai_score": self.ai_score,
            "ai_insights": self.ai_insights,
            "generated_at": isoformat(self.generated_at),
        }
