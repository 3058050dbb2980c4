import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Uuid, CheckConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from courier_bridge.infrastructure.db.base import Base


class Profile(Base):
    """One row per auth user; `id` is the auth user id."""

    __tablename__ = "profiles"
    __table_args__ = (CheckConstraint("role in ('admin', 'courier')", name="ck_profiles_role"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), index=True)
    role: Mapped[str] = mapped_column(String(20), default="courier")
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
