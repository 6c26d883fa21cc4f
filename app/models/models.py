from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Boolean, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.sql import func
from datetime import datetime
from app.core.db import Base


class Gender(Base):
    __tablename__ = "gender"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True)
    display_name: Mapped[str] = mapped_column(String(128))
    banner_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    categories: Mapped[list["Category"]] = relationship("Category", back_populates="gender", lazy="selectin")


class Category(Base):
    __tablename__ = "category"
    __table_args__ = (UniqueConstraint("name", "gender_id", name="uq_category_name_gender"),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64))
    display_name: Mapped[str] = mapped_column(String(128))
    banner_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    gender_id: Mapped[int] = mapped_column(Integer, ForeignKey("gender.id", ondelete="CASCADE"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    gender: Mapped["Gender"] = relationship("Gender", back_populates="categories", lazy="selectin")


class Outfit(Base):
    __tablename__ = "outfit"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # data:image/... payload, http(s) URL or a path relative to the image roots
    image_url: Mapped[str] = mapped_column(Text)
    cloth_type: Mapped[str] = mapped_column(String(64), default="upper")
    price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    category_id: Mapped[int] = mapped_column(Integer, ForeignKey("category.id", ondelete="CASCADE"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    category: Mapped["Category"] = relationship("Category", lazy="selectin")


class User(Base):
    __tablename__ = "user"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text)
    email: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    plan: Mapped[str] = mapped_column(String(32), default="Free")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class TryOnResult(Base):
    __tablename__ = "try_on_result"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("user.id", ondelete="CASCADE"))
    outfit_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("outfit.id", ondelete="SET NULL"), nullable=True)
    result_image_url: Mapped[str] = mapped_column(Text, default="")
    task_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    outfit: Mapped["Outfit | None"] = relationship("Outfit", lazy="selectin")


class BatchTryOnResult(Base):
    __tablename__ = "batch_try_on_result"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    batch_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_image_path: Mapped[str] = mapped_column(Text)
    total_outfits: Mapped[int] = mapped_column(Integer)
    completed_count: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(24), default="processing")
    # JSON-encoded list of OutfitResult
    results: Mapped[str] = mapped_column(Text, default="[]")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
