"""
System configuration for the personalization engine.

Settings live in the settings store as a single document written by the admin
tooling. The engine reads them through ConfigStore, which caches the parsed
value for a fixed TTL so the retrieval path doesn't hit the store every call.
Missing or broken settings fall back to the defaults below.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from brand_memory.clock import normalized_clock
from brand_memory.storage.protocols import SettingsStore

logger = logging.getLogger(__name__)

CONFIG_CACHE_TTL_SECONDS = 5 * 60


class _SettingsModel(BaseModel):
    # Admin documents use camelCase keys; Python callers may use field names.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RateLimitingConfig(_SettingsModel):
    enabled: bool = False
    global_max_per_hour: int = 1000
    global_max_per_day: int = 10000
    user_max_per_hour: int = 50
    user_max_per_day: int = 500


class VectorCleanupConfig(_SettingsModel):
    enabled: bool = True
    retention_days: int = 90
    min_performance_threshold: float = 0.3


class EmbeddingConfig(_SettingsModel):
    model: str = "text-embedding-3-small"
    dimensions: int = 1536
    cost_per_1k: float = Field(default=0.02, alias="costPer1K")


class PerformanceConfig(_SettingsModel):
    similarity_threshold: float = 0.7
    max_context_length: int = 8000
    cache_enabled: bool = True
    cache_ttl: int = Field(default=3600, alias="cacheTTL")


class SystemConfig(_SettingsModel):
    rate_limiting: RateLimitingConfig = Field(default_factory=RateLimitingConfig)
    vector_cleanup: VectorCleanupConfig = Field(default_factory=VectorCleanupConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)


@dataclass
class ConfigCache:
    value: SystemConfig
    loaded_at: datetime


class ConfigStore:
    """
    TTL-cached access to SystemConfig.

    Invalidation is time based only. A failed load is never cached, so the
    next call tries the settings store again.

    Example:
        >>> config_store = ConfigStore(settings_store)
        >>> config = await config_store.load()
        >>> config.performance.similarity_threshold
        0.7
    """

    def __init__(
        self,
        settings_store: Optional[SettingsStore] = None,
        ttl_seconds: float = CONFIG_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            settings_store: Where the admin settings document lives (None = defaults only)
            ttl_seconds: How long a loaded config is served from cache
            clock: Time source, injectable for tests
        """
        self._settings_store = settings_store
        self._ttl_seconds = ttl_seconds
        self._clock = normalized_clock(clock)
        self._cache: Optional[ConfigCache] = None

    @property
    def cache(self) -> Optional[ConfigCache]:
        return self._cache

    def invalidate(self):
        self._cache = None

    async def load(self) -> SystemConfig:
        """Return the current config, reading the settings store if the cache expired."""
        now = self._clock()

        if self._cache is not None:
            age = (now - self._cache.loaded_at).total_seconds()
            if age < self._ttl_seconds:
                return self._cache.value

        try:
            raw = None
            if self._settings_store is not None:
                raw = await self._settings_store.get_system_config()

            if raw:
                config = SystemConfig.model_validate(raw)
                logger.info("System configuration loaded")
            else:
                config = SystemConfig()
                logger.info("Using default system configuration")

        except Exception as e:
            logger.error(f"Failed to load system configuration, using defaults: {e}")
            return SystemConfig()

        self._cache = ConfigCache(value=config, loaded_at=now)
        return config
