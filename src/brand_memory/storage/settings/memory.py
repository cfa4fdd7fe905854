"""In-memory settings storage, for tests and single-process use."""

import copy
import logging
from typing import Dict, Optional

from brand_memory.models import RateLimitOverride

logger = logging.getLogger(__name__)


class InMemorySettingsStore:
    """In-memory implementation of the SettingsStore protocol."""

    def __init__(self, system_config: Optional[dict] = None):
        self._system_config = copy.deepcopy(system_config)
        self._overrides: Dict[str, RateLimitOverride] = {}

        logger.info("InMemorySettingsStore initialized")

    async def get_system_config(self) -> Optional[dict]:
        return copy.deepcopy(self._system_config)

    async def put_system_config(self, config: dict) -> None:
        self._system_config = copy.deepcopy(config)
        logger.info("System configuration updated")

    async def get_rate_limit_override(self, user_id: str) -> Optional[RateLimitOverride]:
        override = self._overrides.get(user_id)
        return override.model_copy() if override else None

    async def put_rate_limit_override(self, user_id: str, override: RateLimitOverride) -> None:
        self._overrides[user_id] = override.model_copy()
        logger.info(f"Rate limit override set for user {user_id} (enabled={override.enabled})")
