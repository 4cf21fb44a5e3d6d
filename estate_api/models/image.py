"""
PropertyImage model for listing photos.
Stores the public URL and the storage object path of each uploaded image.
"""

from sqlalchemy import String, Boolean, Integer, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column
from estate_api.database import Base
from estate_api.utils.dates import isoformat
from typing import Optional


class PropertyImage(Base):
    """
    Image attached to a property listing.
    At most one image per property is primary; the upload flow keeps this
    true, the schema does not enforce it.
    """

    __tablename__ = "property_images"

    property_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    image_url: Mapped[str] = mapped_column(String(1000), nullable=False)

    storage_path: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Object path inside the property image bucket"
    )

    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        """String representation of the property image."""
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, primary={self.is_primary})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "property_id": self.property_id,
            "image_url": self.image_url,
            "is_primary": self.is_primary,
            "created_at": isoformat(self.created_at),
        }


property_primary_index = Index(
    "idx_property_images_property_primary",
    PropertyImage.property_id,
    PropertyImage.is_primary,
)
