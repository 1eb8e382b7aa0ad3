"""
AIConfig model: one durable AI provider configuration per user.
Rows are upserted by user_id and never deleted by the application.
"""
from sqlalchemy import Column, String, Text, DateTime, UniqueConstraint
from datetime import datetime

from expense_ai.models.base import Base, generate_uuid


class AIConfig(Base):
    """Per-user provider, credential and model selection."""

    __tablename__ = "ai_config"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(128), nullable=False)  # Identity supplier user ID

    provider = Column(String(32), nullable=False)  # ProviderId value
    api_key = Column(Text, nullable=False)
    model_name = Column(String(128), nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_ai_config_user_id"),
    )

    def __repr__(self):
        return f"<AIConfig(user_id={self.user_id}, provider={self.provider}, model={self.model_name})>"
