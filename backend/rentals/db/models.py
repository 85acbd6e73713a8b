# rentals/db/models.py

from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Text,
    ForeignKey,
    Numeric,
    Float,
    Boolean,
    Table,
    Index,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import declared_attr, relationship

from rentals.core.enums import BookingStatus, PaymentStatus
from rentals.core.roles import Role
from rentals.db.base import Base


# ---------------------------
# Association tables
# ---------------------------
property_amenities = Table(
    "property_amenities",
    Base.metadata,
    Column("property_id", Integer, ForeignKey("properties.id", ondelete="CASCADE"), primary_key=True),
    Column("amenity_id", Integer, ForeignKey("amenities.id", ondelete="CASCADE"), primary_key=True),
)

property_location_features = Table(
    "property_location_features",
    Base.metadata,
    Column("property_id", Integer, ForeignKey("properties.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "location_feature_id",
        Integer,
        ForeignKey("location_features.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

wishlist_properties = Table(
    "wishlist_properties",
    Base.metadata,
    Column("wishlist_id", Integer, ForeignKey("wishlists.id", ondelete="CASCADE"), primary_key=True),
    Column("property_id", Integer, ForeignKey("properties.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(32), nullable=True)

    # DB column name: password_hash
    hashed_password = Column("password_hash", String(255), nullable=False)

    role = Column(String(20), nullable=False, default=Role.GUEST.value)
    profile_image = Column(String(512), nullable=True)
    bio = Column(Text, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    properties = relationship(
        "Property",
        back_populates="host",
        cascade="all,delete-orphan",
        passive_deletes=True,
    )

    bookings = relationship(
        "Booking",
        back_populates="guest",
        cascade="all,delete-orphan",
        passive_deletes=True,
    )

    reviews = relationship(
        "Review",
        back_populates="user",
        cascade="all,delete-orphan",
        passive_deletes=True,
    )

    wishlists = relationship(
        "Wishlist",
        back_populates="user",
        cascade="all,delete-orphan",
        passive_deletes=True,
    )

    refresh_tokens = relationship(
        "UserRefreshToken",
        back_populates="user",
        cascade="all,delete-orphan",
        passive_deletes=True,
    )


class TaxonomyMixin:
    """Shared shape of the admin-managed lookup tables."""

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @declared_attr
    def created_by_id(cls):
        return Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    @declared_attr
    def created_by(cls):
        return relationship("User", lazy="selectin")


class Category(TaxonomyMixin, Base):
    __tablename__ = "categories"


class PropertyType(TaxonomyMixin, Base):
    __tablename__ = "property_types"


class Amenity(TaxonomyMixin, Base):
    __tablename__ = "amenities"

    icon = Column(String(100), nullable=True)


class LocationFeature(TaxonomyMixin, Base):
    __tablename__ = "location_features"


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)

    host_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    property_type_id = Column(Integer, ForeignKey("property_types.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)

    # "RENT" | "SALE"; rental_period only set for RENT
    listing_type = Column(String(10), nullable=False, index=True)
    rental_period = Column(String(10), nullable=True)

    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    area = Column(Float, nullable=True)

    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    is_available = Column(Boolean, nullable=False, default=True)
    available_from = Column(DateTime, nullable=True)
    available_to = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    host = relationship("User", back_populates="properties")
    category = relationship("Category", lazy="selectin")
    property_type = relationship("PropertyType", lazy="selectin")
    amenities = relationship("Amenity", secondary=property_amenities, lazy="selectin")
    location_features = relationship(
        "LocationFeature",
        secondary=property_location_features,
        lazy="selectin",
    )

    images = relationship(
        "PropertyImage",
        back_populates="property",
        cascade="all,delete-orphan",
        passive_deletes=True,
        order_by="PropertyImage.id",
        lazy="selectin",
    )

    bookings = relationship(
        "Booking",
        back_populates="property",
        cascade="all,delete-orphan",
        passive_deletes=True,
    )

    reviews = relationship(
        "Review",
        back_populates="property",
        cascade="all,delete-orphan",
        passive_deletes=True,
    )

    wishlists = relationship(
        "Wishlist",
        secondary=wishlist_properties,
        back_populates="properties",
    )


class PropertyImage(Base):
    __tablename__ = "property_images"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url = Column(String(512), nullable=False)
    is_featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    property = relationship("Property", back_populates="images")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)

    guest_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    property_id = Column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
    )

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    guest_count = Column(Integer, nullable=False, default=1)

    # Fixed at creation time
    total_price = Column(Numeric(14, 4), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID.value)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    guest = relationship("User", back_populates="bookings")
    property = relationship("Property", back_populates="bookings")
    review = relationship("Review", back_populates="booking", uselist=False)

    __table_args__ = (
        Index("ix_bookings_property_status", "property_id", "status"),
        CheckConstraint("guest_count >= 1", name="check_booking_guest_count_positive"),
        CheckConstraint("start_date < end_date", name="check_booking_dates_ordered"),
    )


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)

    booking_id = Column(
        Integer,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
    )
    property_id = Column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    booking = relationship("Booking", back_populates="review")
    property = relationship("Property", back_populates="reviews")
    user = relationship("User", back_populates="reviews")

    __table_args__ = (
        # One review per booking
        UniqueConstraint("booking_id", name="uq_reviews_booking"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="check_review_rating_range"),
    )


class Wishlist(Base):
    __tablename__ = "wishlists"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="wishlists")
    properties = relationship(
        "Property",
        secondary=wishlist_properties,
        back_populates="wishlists",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_wishlists_user_name"),
    )


class UserRefreshToken(Base):
    __tablename__ = "user_refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    revoked = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="refresh_tokens")
