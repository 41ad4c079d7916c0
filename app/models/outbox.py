"""ORM model for outbox events awaiting delivery to notification sinks."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, false, func
from sqlalchemy.dialects.postgresql import JSONB

from app.models.base import Base


class OutboxEvent(Base):
    __tablename__ = "outbox_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(100), nullable=False)
    payload = Column(JSONB, nullable=False)
    processed = Column(Boolean, nullable=False, server_default=false(), index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), index=True)
    processed_at = Column(DateTime, nullable=True)
