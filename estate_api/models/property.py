"""
Property model for sale and rental listings.
Handles listing data, pricing and relationship management.
"""

from sqlalchemy import String, Text, Integer, Numeric, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estate_api.database import Base
from estate_api.models.user import enum_column
from estate_api.utils.dates import isoformat
from decimal import Decimal
import enum
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estate_api.models.user import User
    from estate_api.models.image import PropertyImage
    from estate_api.models.ai_analysis import AiAnalysis


class PropertyType(str, enum.Enum):
    """Kind of real estate being listed."""
    HOUSE = "House"
    APARTMENT = "Apartment"
    VILLA = "Villa"
    COMMERCIAL = "Commercial"
    LAND = "Land"


class PropertyPurpose(str, enum.Enum):
    """Whether a listing is offered for sale or for rent."""
    SALE = "Sale"
    RENT = "Rent"


class PropertyStatus(str, enum.Enum):
    """Listing lifecycle status. Any status may follow any other."""
    AVAILABLE = "Available"
    SOLD = "Sold"
    RENTED = "Rented"


class Property(Base):
    """
    Property model for managing sale and rental listings.
    Images, favorites and the AI analysis are removed with the listing.
    """

    __tablename__ = "properties"

    agent_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the agent who owns this property"
    )

    type: Mapped[PropertyType] = mapped_column(enum_column(PropertyType), nullable=False, index=True)
    purpose: Mapped[PropertyPurpose] = mapped_column(enum_column(PropertyPurpose), nullable=False, index=True)

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
        index=True,
        comment="Listing price in PKR"
    )

    location: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    area: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Covered area in square feet"
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[PropertyStatus] = mapped_column(
        enum_column(PropertyStatus),
        nullable=False,
        default=PropertyStatus.AVAILABLE,
        index=True
    )

    # Relationships
    agent: Mapped["User"] = relationship("User", lazy="selectin")

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="(PropertyImage.is_primary.desc(), PropertyImage.created_at.asc(), PropertyImage.id.asc())"
    )

    ai_analysis: Mapped[Optional["AiAnalysis"]] = relationship(
        "AiAnalysis",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin"
    )

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, type={self.type}, location={self.location}, price={self.price})>"

    @property
    def primary_image(self) -> Optional["PropertyImage"]:
        """Get the primary image for this property, if one is marked."""
        for image in self.images:
            if image.is_primary:
                return image
        return None

    @property
    def has_primary_image(self) -> bool:
        return self.primary_image is not None

    def is_owned_by(self, user_id: int) -> bool:
        return self.agent_id == user_id

    def to_dict(self, include_agent: bool = True, include_images: str = "primary", include_analysis: bool = False) -> dict:
        """
        Convert property to dictionary.

        Args:
            include_agent: Whether to include the agent contact card
            include_images: ``"primary"`` for the primary image only, ``"all"``
                for every image, anything else for none
            include_analysis: Whether to include the stored AI analysis

        Returns:
            Dictionary representation of property
        """
        result = {
            "id": self.id,
            "agent_id": self.agent_id,
            "type": self.type.value,
            "purpose": self.purpose.value,
            "price": float(self.price),
            "location": self.location,
            "bedrooms": self.bedrooms,
            "area": float(self.area),
            "description": self.description,
            "status": self.status.value,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

        if include_agent and self.agent:
            result["agent"] = self.agent.to_contact()

        if include_images == "all":
            result["images"] = [image.to_dict() for image in self.images]
        elif include_images == "primary":
            primary = self.primary_image
            result["images"] = [primary.to_dict()] if primary else []

        if include_analysis:
            result["ai_analysis"] = self.ai_analysis.to_dict() if self.ai_analysis else None

        return result

    def to_compact(self) -> dict:
        """Row sent back to the language model after a search tool call."""
        primary = self.primary_image
        return {
            "id": self.id,
            "type": self.type.value,
            "purpose": self.purpose.value,
            "price": float(self.price),
            "location": self.location,
            "bedrooms": self.bedrooms,
            "area": float(self.area),
            "status": self.status.value,
            "image": primary.image_url if primary else None,
            "agent": self.agent.name if self.agent else None,
        }


# Composite indexes for the common search patterns
location_status_index = Index(
    "idx_properties_status_location",
    Property.status,
    Property.location,
)

type_purpose_index = Index(
    "idx_properties_type_purpose_status",
    Property.type,
    Property.purpose,
    Property.status,
)

agent_created_index = Index(
    "idx_properties_agent_created",
    Property.agent_id,
    Property.created_at,
)
