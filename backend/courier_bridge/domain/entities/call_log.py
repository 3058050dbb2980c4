import uuid
from datetime import datetime
from sqlalchemy import String, Integer, ForeignKey, DateTime, Text, Index, Uuid, CheckConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from courier_bridge.infrastructure.db.base import Base


class CallLog(Base):
    __tablename__ = "call_logs"
    __table_args__ = (
        CheckConstraint("call_duration is null or call_status = 'completed'", name="ck_call_logs_duration_completed"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    customer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    customer_phone_masked: Mapped[str | None] = mapped_column(String(16), nullable=True)  # "****" + last 4
    courier_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    agent_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    call_status: Mapped[str] = mapped_column(String(40), default="attempted", server_default="attempted", index=True)
    call_timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    call_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # upsert key for status callbacks
    twilio_call_sid: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

Index("ix_call_logs_status_timestamp", CallLog.call_status, CallLog.call_timestamp)
