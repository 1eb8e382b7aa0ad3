"""
Repository for AI config rows.
Enforces the one-row-per-user invariant with an upsert keyed by user_id.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ai.models.ai_config import AIConfig


class AIConfigRepository:
    """Repository for ai_config database operations."""

    @staticmethod
    async def get_by_user(db: AsyncSession, user_id: str) -> Optional[AIConfig]:
        """Return the user's config row, or None if they never saved one."""
        result = await db.execute(
            select(AIConfig).where(AIConfig.user_id == user_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert(
        db: AsyncSession,
        user_id: str,
        provider: str,
        api_key: str,
        model_name: str,
    ) -> AIConfig:
        """
        Insert or update the user's config row with a full record.

        Args:
            db: Database session
            user_id: Owner of the row
            provider: ProviderId value
            api_key: Provider credential
            model_name: Selected model

        Returns:
            The stored AIConfig row (committed)
        """
        config = await AIConfigRepository.get_by_user(db, user_id)

        if config:
            config.provider = provider
            config.api_key = api_key
            config.model_name = model_name
            config.updated_at = datetime.utcnow()
        else:
            config = AIConfig(
                user_id=user_id,
                provider=provider,
                api_key=api_key,
                model_name=model_name,
            )
            db.add(config)

        await db.commit()
        await db.refresh(config)
        return config
