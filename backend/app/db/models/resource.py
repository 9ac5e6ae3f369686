# app/db/models/resource.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    ForeignKey,
    DateTime,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class ResourceModel(Base):
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    content = Column(Text)
    category = Column(String(50))
    type = Column(String(20), nullable=False)  # article, video, guide, worksheet, audio
    url = Column(String, nullable=True)
    file_path = Column(String, nullable=True)  # relative to settings.upload_dir
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    is_published = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    views = Column(Integer, nullable=False, default=0)
    downloads = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    author = relationship("UserModel")
    likes = relationship(
        "ResourceLikeModel",
        back_populates="resource",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ResourceLikeModel(Base):
    __tablename__ = "resource_likes"

    id = Column(Integer, primary_key=True)
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    liked_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint("resource_id", "user_id", name="unq_resource_like"),)

    resource = relationship("ResourceModel", back_populates="likes")


class ResourceDownloadModel(Base):
    __tablename__ = "resource_downloads"

    id = Column(Integer, primary_key=True)
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    downloaded_at = Column(DateTime(timezone=True), server_default=func.now())
