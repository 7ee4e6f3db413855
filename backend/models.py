from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, ForeignKey, Text, Enum
from sqlalchemy.sql import func
from sqlalchemy.dialects.mysql import INTEGER
from sqlalchemy.orm import relationship
from database import Base

# MySQL では UNSIGNED、それ以外（テストの SQLite 等）では通常の INTEGER
UnsignedInt = Integer().with_variant(INTEGER(unsigned=True), "mysql")

MEDIA_TYPES = ("image", "video")


class User(Base):
    __tablename__ = 'users'

    id = Column(UnsignedInt, primary_key=True, autoincrement=True)
    username = Column(String(30), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password = Column(String(255), nullable=False)
    profile_picture_url = Column(String(500))
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    albums = relationship("Album", back_populates="owner", order_by="Album.id")


class Album(Base):
    __tablename__ = 'albums'

    id = Column(UnsignedInt, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    owner_id = Column(UnsignedInt, ForeignKey('users.id'), nullable=False)
    cover_image_url = Column(String(500))
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="albums")
    media_items = relationship(
        "MediaItem",
        back_populates="album",
        order_by="MediaItem.id",
        cascade="all, delete-orphan",
    )


class MediaItem(Base):
    __tablename__ = 'media_items'

    id = Column(UnsignedInt, primary_key=True, autoincrement=True)
    type = Column(Enum(*MEDIA_TYPES, name="media_type"), nullable=False)
    cloudinary_public_id = Column(String(255), nullable=False)
    cloudinary_url = Column(String(500), nullable=False)
    thumbnail_url = Column(String(500))
    width = Column(UnsignedInt)
    height = Column(UnsignedInt)
    duration = Column(Float)
    title = Column(String(100))
    description = Column(Text)
    album_id = Column(UnsignedInt, ForeignKey('albums.id'), nullable=False)
    uploader_id = Column(UnsignedInt, ForeignKey('users.id'), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    album = relationship("Album", back_populates="media_items")
    uploader = relationship("User")
