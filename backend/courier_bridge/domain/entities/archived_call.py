import uuid
from datetime import date, datetime
from sqlalchemy import String, Integer, Text, Date, DateTime, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column
from courier_bridge.infrastructure.db.base import Base


class ArchivedCall(Base):
    __tablename__ = "archived_calls"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    original_call_log_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    customer_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    customer_phone_masked: Mapped[str | None] = mapped_column(String(16), nullable=True)
    courier_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    agent_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    call_status: Mapped[str] = mapped_column(String(40))
    call_timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    call_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    twilio_call_sid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    archived_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    archive_date: Mapped[date] = mapped_column(Date, index=True)
