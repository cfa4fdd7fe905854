"""
SQLAlchemy-based settings storage.

The system config is kept as a JSON document under a fixed key so admin
tooling can store partial documents; per-user rate limit overrides get their
own table.
"""

import asyncio
import json
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Column, Engine, Integer, String, Text
from sqlalchemy.orm import Session, declarative_base

from brand_memory.models import RateLimitOverride
from brand_memory.storage.columns import NaiveUTCDateTime

logger = logging.getLogger(__name__)

Base = declarative_base()

SYSTEM_CONFIG_KEY = "ragSystemConfig"


class AdminSettingDB(Base):
    __tablename__ = "admin_settings"

    key = Column(String, primary_key=True)
    value_json = Column(Text, nullable=False, default="{}")
    updated_at = Column(NaiveUTCDateTime, nullable=False, default=datetime.now)


class RateLimitOverrideDB(Base):
    __tablename__ = "rag_rate_limit_overrides"

    user_id = Column(String, primary_key=True)
    enabled = Column(Boolean, nullable=False, default=False)
    max_embeddings_per_hour = Column(Integer, nullable=True)
    max_embeddings_per_day = Column(Integer, nullable=True)


class SQLAlchemySettingsStore:
    """SQLAlchemy implementation of the SettingsStore protocol."""

    def __init__(self, engine: Engine):
        self.engine = engine
        logger.info(f"SQLAlchemySettingsStore initialized (engine={engine.url})")

    @contextmanager
    def _session(self):
        """Context manager for database sessions with automatic commit/rollback."""
        session = Session(self.engine)
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create database tables if they don't exist."""
        Base.metadata.create_all(self.engine)
        logger.info("Settings tables created/verified")

    async def get_system_config(self) -> Optional[dict]:
        return await asyncio.to_thread(self._get_system_config)

    def _get_system_config(self) -> Optional[dict]:
        with self._session() as session:
            row = session.get(AdminSettingDB, SYSTEM_CONFIG_KEY)
            return json.loads(row.value_json) if row else None

    async def put_system_config(self, config: dict) -> None:
        await asyncio.to_thread(self._put_system_config, config)

    def _put_system_config(self, config: dict) -> None:
        with self._session() as session:
            session.merge(
                AdminSettingDB(
                    key=SYSTEM_CONFIG_KEY,
                    value_json=json.dumps(config),
                    updated_at=datetime.now(),
                )
            )
        logger.info("System configuration updated")

    async def get_rate_limit_override(self, user_id: str) -> Optional[RateLimitOverride]:
        return await asyncio.to_thread(self._get_rate_limit_override, user_id)

    def _get_rate_limit_override(self, user_id: str) -> Optional[RateLimitOverride]:
        with self._session() as session:
            row = session.get(RateLimitOverrideDB, user_id)
            if not row:
                return None

            return RateLimitOverride(
                enabled=row.enabled,
                max_embeddings_per_hour=row.max_embeddings_per_hour,
                max_embeddings_per_day=row.max_embeddings_per_day,
            )

    async def put_rate_limit_override(self, user_id: str, override: RateLimitOverride) -> None:
        await asyncio.to_thread(self._put_rate_limit_override, user_id, override)

    def _put_rate_limit_override(self, user_id: str, override: RateLimitOverride) -> None:
        with self._session() as session:
            session.merge(RateLimitOverrideDB(user_id=user_id, **override.model_dump()))
        logger.info(f"Rate limit override set for user {user_id} (enabled={override.enabled})")
