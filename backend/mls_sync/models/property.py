from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mls_sync.database import Base


class PropertyStatus(StrEnum):
    ACTIVE = "active"
    PENDING = "pending"
    SOLD = "sold"
    WITHDRAWN = "withdrawn"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    COMING_SOON = "coming_soon"


class Property(Base):
    """A listing as stored locally, keyed by its MLS number."""

    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    mls_number: Mapped[str] = mapped_column(
        String(100), unique=True, index=True, nullable=False
    )
    title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float, default=0)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    latitude: Mapped[float] = mapped_column(Float, default=0)
    longitude: Mapped[float] = mapped_column(Float, default=0)
    bedrooms: Mapped[int] = mapped_column(Integer, default=0)
    bathrooms: Mapped[float] = mapped_column(Float, default=0)
    square_feet: Mapped[int] = mapped_column(Integer, default=0)
    lot_size: Mapped[float] = mapped_column(Float, default=0)
    property_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=PropertyStatus.ACTIVE.value
    )
    year_built: Mapped[int] = mapped_column(Integer, default=0)
    garage: Mapped[int] = mapped_column(Integer, default=0)
    parking_spaces: Mapped[int] = mapped_column(Integer, default=0)
    property_tax: Mapped[float] = mapped_column(Float, default=0)
    hoa_fee: Mapped[float] = mapped_column(Float, default=0)
    mls_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    listing_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_modified: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now()
    )

    images: Mapped[list["PropertyImage"]] = relationship(
        back_populates="parent",
        cascade="all, delete-orphan",
        order_by="PropertyImage.display_order",
    )
    features: Mapped[list["PropertyFeature"]] = relationship(
        back_populates="parent", cascade="all, delete-orphan"
    )


class PropertyImage(Base):
    __tablename__ = "property_images"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id"), nullable=False, index=True
    )
    mls_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    image_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    caption: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    parent: Mapped["Property"] = relationship(back_populates="images")


class PropertyFeature(Base):
    __tablename__ = "property_features"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id"), nullable=False, index=True
    )
    mls_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    feature: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="General")

    parent: Mapped["Property"] = relationship(back_populates="features")
